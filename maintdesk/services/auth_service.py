# maintdesk/services/auth_service.py
"""Authentication service - handles password hashing and JWT tokens"""
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import UUID

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from maintdesk.core.config import settings
from maintdesk.core.logger import get_logger
from maintdesk.models.user import User
from maintdesk.utils.datetime_utils import get_utc_now
from maintdesk.utils.exceptions import UnauthorizedError

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12


class AuthService:
    """Service for authentication and password management"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify password against hash.

        Returns:
            True if password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                plain_password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    @staticmethod
    def create_access_token(user: User) -> str:
        """
        Create JWT token for an authenticated user.

        Only the user id is trusted from the token; role and scope are
        re-read from the user record on every request.
        """
        now = get_utc_now()
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "exp": now + timedelta(hours=settings.jwt_expiration_hours),
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def verify_jwt_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode JWT token.

        Returns:
            Token payload dict if valid, None otherwise
        """
        try:
            return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None

    @staticmethod
    def authenticate(db: Session, username: str, password: str) -> User:
        """
        Check credentials of an active user and record the login.

        Raises:
            UnauthorizedError: Unknown user, inactive user or wrong password
        """
        user = db.execute(
            select(User).where(User.username == username.strip(), User.is_active.is_(True))
        ).scalar_one_or_none()

        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {username!r}")
            raise UnauthorizedError("Invalid username or password")

        user.last_login = get_utc_now()
        db.commit()
        logger.info(f"User logged in: {user.username}")
        return user

    @staticmethod
    def load_active_user(db: Session, user_id: str) -> User:
        """Resolve a token subject to an active user."""
        try:
            uid = UUID(str(user_id))
        except ValueError:
            raise UnauthorizedError("Invalid token subject")

        user = db.get(User, uid)
        if not user or not user.is_active:
            raise UnauthorizedError("User not found or inactive")
        return user
