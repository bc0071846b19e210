# maintdesk/middleware/auth_middleware.py
"""Authentication dependency for JWT verification"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.core.logger import get_logger
from maintdesk.services.auth_service import AuthService
from maintdesk.services.rbac_service import Principal
from maintdesk.utils.exceptions import UnauthorizedError

logger = get_logger(__name__)


def get_token_from_header(request: Request) -> Optional[str]:
    """
    Extract JWT token from Authorization header.

    Expected format: "Bearer <token>"
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise UnauthorizedError("Invalid authorization header")

    return parts[1]


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """
    FastAPI dependency resolving the caller.

    Role and scope come from the stored user, so a role change or
    deactivation takes effect before the token expires.

    Raises:
        UnauthorizedError: If token is missing, invalid, expired, or the user is inactive
    """
    token = get_token_from_header(request)
    if not token:
        raise UnauthorizedError("Missing authorization token")

    payload = AuthService.verify_jwt_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired token")

    user = AuthService.load_active_user(db, payload.get("sub"))
    principal = Principal.from_user(user)
    request.state.username = principal.username
    return principal
