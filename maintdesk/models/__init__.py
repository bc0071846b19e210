# maintdesk/models/__init__.py
from .base import Base
from .command import Command, Unit
from .user import User, UserRole
from .ticket import (
    Ticket,
    TicketComment,
    TicketCounter,
    TicketPriority,
    TicketStatus,
    PRIORITY_SEVERITY,
)

__all__ = [
    "Base",
    "Command",
    "Unit",
    "User",
    "UserRole",
    "Ticket",
    "TicketComment",
    "TicketCounter",
    "TicketPriority",
    "TicketStatus",
    "PRIORITY_SEVERITY",
]
