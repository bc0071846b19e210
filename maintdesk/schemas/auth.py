# maintdesk/schemas/auth.py
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from maintdesk.models.user import UserRole

class LoginRequest(BaseModel):
    """Login request."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)

class UserResponse(BaseModel):
    """User data (never includes the password hash)."""
    id: UUID
    username: str
    role: UserRole
    command: str
    unit: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class PrincipalResponse(BaseModel):
    id: UUID
    username: str
    role: UserRole
    command: str
    unit: str

    model_config = ConfigDict(from_attributes=True)

class LoginResponse(BaseModel):
    """Login response with token."""
    access_token: str
    user: UserResponse
    token_type: str = "bearer"
