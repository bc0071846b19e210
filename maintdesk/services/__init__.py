from .auth_service import AuthService
from .export_service import ExportService
from .import_service import ImportService
from .numbering_service import NumberingService
from .rbac_service import Permission, Principal, RBACService
from .reference_service import ReferenceService
from .scope_service import ScopeService, TicketScope
from .stats_service import StatsService
from .ticket_service import TicketService
from .user_service import UserService

__all__ = [
    "AuthService",
    "ExportService",
    "ImportService",
    "NumberingService",
    "Permission",
    "Principal",
    "RBACService",
    "ReferenceService",
    "ScopeService",
    "TicketScope",
    "StatsService",
    "TicketService",
    "UserService",
]
