# maintdesk/services/rbac_service.py
from dataclasses import dataclass
from enum import Enum
from typing import Union
from uuid import UUID

from maintdesk.models.user import User, UserRole
from maintdesk.utils.exceptions import ForbiddenError

RoleLike = Union[UserRole, str, None]

ROLE_RANK = {
    UserRole.VIEWER: 1,
    UserRole.TECHNICIAN: 2,
    UserRole.ADMIN: 3,
}


class Permission(str, Enum):
    """All permissions in the system."""
    # Ticket permissions
    TICKET_VIEW = "ticket:view"
    TICKET_CREATE = "ticket:create"
    TICKET_UPDATE = "ticket:update"
    TICKET_COMMENT = "ticket:comment"
    TICKET_DELETE = "ticket:delete"
    TICKET_IMPORT = "ticket:import"
    TICKET_VIEW_DELETED = "ticket:view_deleted"

    # Admin permissions
    USERS_MANAGE = "users:manage"
    REFERENCE_MANAGE = "reference:manage"


@dataclass(frozen=True)
class Principal:
    """Authenticated actor's role and organizational scope for one request."""
    id: UUID
    username: str
    role: UserRole
    command: str
    unit: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            username=user.username,
            role=UserRole(user.role),
            command=user.command,
            unit=user.unit,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class RBACService:
    """Role-based access control over the ordered role hierarchy."""

    # Permission matrix: permission -> minimum role
    PERMISSION_MIN_ROLE = {
        Permission.TICKET_VIEW: UserRole.VIEWER,
        Permission.TICKET_CREATE: UserRole.TECHNICIAN,
        Permission.TICKET_UPDATE: UserRole.TECHNICIAN,
        Permission.TICKET_COMMENT: UserRole.TECHNICIAN,
        Permission.TICKET_DELETE: UserRole.ADMIN,
        Permission.TICKET_IMPORT: UserRole.ADMIN,
        Permission.TICKET_VIEW_DELETED: UserRole.ADMIN,
        Permission.USERS_MANAGE: UserRole.ADMIN,
        Permission.REFERENCE_MANAGE: UserRole.ADMIN,
    }

    @staticmethod
    def role_rank(role: RoleLike) -> int:
        """Rank of a role; unknown roles rank 0, below every real role."""
        try:
            return ROLE_RANK[UserRole(role)]
        except ValueError:
            return 0

    @staticmethod
    def has_minimum_role(actual: RoleLike, required: RoleLike) -> bool:
        """True iff rank(actual) >= rank(required)."""
        return RBACService.role_rank(actual) >= RBACService.role_rank(required)

    @staticmethod
    def require_role(actual: RoleLike, required: RoleLike) -> bool:
        """Enforce minimum role (raises ForbiddenError if not allowed)."""
        if not RBACService.has_minimum_role(actual, required):
            raise ForbiddenError(f"Requires role {UserRole(required).value} or higher")
        return True

    @staticmethod
    def has_permission(role: RoleLike, permission: Permission) -> bool:
        """Check if role has permission."""
        return RBACService.has_minimum_role(role, RBACService.PERMISSION_MIN_ROLE[permission])

    @staticmethod
    def require_permission(role: RoleLike, permission: Permission) -> bool:
        """Enforce permission (raises ForbiddenError if not allowed)."""
        if not RBACService.has_permission(role, permission):
            raise ForbiddenError(f"Missing permission: {permission.value}")
        return True
