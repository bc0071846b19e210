# maintdesk/routes/users.py
"""User management routes (admin)"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.dependencies import get_current_principal
from maintdesk.schemas.auth import UserResponse
from maintdesk.schemas.common import APIResponse, ok
from maintdesk.schemas.user import CreateUserRequest, UpdateUserRequest
from maintdesk.services.rbac_service import Principal
from maintdesk.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("")
def list_users(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[list[UserResponse]]:
    users = UserService.list_users(db, principal)
    return ok([UserResponse.model_validate(u) for u in users], total=len(users))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[UserResponse]:
    """Create a new user"""
    user = UserService.create_user(db, principal, request)
    return ok(UserResponse.model_validate(user))


@router.put("/{user_id}")
def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[UserResponse]:
    """Update role, scope or password"""
    user = UserService.update_user(db, principal, user_id, request)
    return ok(UserResponse.model_validate(user))


@router.delete("/{user_id}")
def deactivate_user(
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[UserResponse]:
    """Deactivate a user"""
    user = UserService.deactivate_user(db, principal, user_id)
    return ok(UserResponse.model_validate(user))
