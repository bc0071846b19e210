# maintdesk/services/user_service.py
"""User management service (admin only)"""
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from maintdesk.core.logger import get_logger
from maintdesk.models.user import User, UserRole
from maintdesk.schemas.user import CreateUserRequest, UpdateUserRequest
from maintdesk.services.auth_service import AuthService
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def _clean(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError("Invalid user data", {field: "may not be blank"})
    return value


class UserService:
    """Service for managing users"""

    @staticmethod
    def list_users(db: Session, principal: Principal) -> list[User]:
        """Active users, newest first."""
        RBACService.require_permission(principal.role, Permission.USERS_MANAGE)
        stmt = select(User).where(User.is_active.is_(True)).order_by(desc(User.created_at))
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def _get_active(db: Session, user_id: UUID) -> User:
        user = db.get(User, user_id)
        if not user or not user.is_active:
            raise NotFoundError("User", str(user_id))
        return user

    @staticmethod
    def create_user(db: Session, principal: Principal, request: CreateUserRequest) -> User:
        """
        Create a new user.

        Raises:
            ConflictError: If the username already exists
        """
        RBACService.require_permission(principal.role, Permission.USERS_MANAGE)

        username = _clean(request.username, "username")
        existing = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if existing:
            raise ConflictError(f"Username '{username}' already exists")

        user = User(
            username=username,
            password_hash=AuthService.hash_password(request.password),
            role=request.role,
            command=_clean(request.command, "command"),
            unit=_clean(request.unit, "unit"),
            is_active=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Username '{username}' already exists") from e

        logger.info(f"User created: {username} ({request.role.value}) by {principal.username}")
        return user

    @staticmethod
    def update_user(db: Session, principal: Principal, user_id: UUID, request: UpdateUserRequest) -> User:
        """Update role, command, unit or password."""
        RBACService.require_permission(principal.role, Permission.USERS_MANAGE)

        user = UserService._get_active(db, user_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        if "role" in changes and user.role == UserRole.ADMIN and changes["role"] != UserRole.ADMIN:
            UserService._ensure_not_last_admin(db)
        if "password" in changes:
            user.password_hash = AuthService.hash_password(changes.pop("password"))
        for field in ("command", "unit"):
            if field in changes:
                changes[field] = _clean(changes[field], field)
        for field, value in changes.items():
            setattr(user, field, value)

        db.commit()
        logger.info(f"User updated: {user.username} by {principal.username}")
        return user

    @staticmethod
    def deactivate_user(db: Session, principal: Principal, user_id: UUID) -> User:
        """Soft delete: the user can no longer log in. The last admin is kept."""
        RBACService.require_permission(principal.role, Permission.USERS_MANAGE)

        user = UserService._get_active(db, user_id)
        if user.role == UserRole.ADMIN:
            UserService._ensure_not_last_admin(db)

        user.is_active = False
        db.commit()
        logger.info(f"User deactivated: {user.username} by {principal.username}")
        return user

    @staticmethod
    def _ensure_not_last_admin(db: Session) -> None:
        admin_count = db.execute(
            select(func.count(User.id)).where(User.role == UserRole.ADMIN, User.is_active.is_(True))
        ).scalar_one()
        if admin_count <= 1:
            raise ValidationError("Cannot remove the last active admin")
