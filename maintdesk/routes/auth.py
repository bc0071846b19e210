# maintdesk/routes/auth.py
"""Authentication routes"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.dependencies import get_current_principal
from maintdesk.schemas.auth import LoginRequest, LoginResponse, PrincipalResponse, UserResponse
from maintdesk.schemas.common import APIResponse, ok
from maintdesk.services.auth_service import AuthService
from maintdesk.services.rbac_service import Principal

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)) -> APIResponse[LoginResponse]:
    """
    Login with username and password.

    Returns:
        JWT access token and the user's profile
    """
    user = AuthService.authenticate(db, request.username, request.password)
    token = AuthService.create_access_token(user)
    return ok(LoginResponse(access_token=token, user=UserResponse.model_validate(user)))


@router.get("/me")
def me(principal: Principal = Depends(get_current_principal)) -> APIResponse[PrincipalResponse]:
    """Current authenticated user"""
    return ok(PrincipalResponse.model_validate(principal))
