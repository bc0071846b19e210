# maintdesk/schemas/user.py
from pydantic import BaseModel, Field
from typing import Optional

from maintdesk.models.user import UserRole

class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole
    command: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=100)

class UpdateUserRequest(BaseModel):
    role: Optional[UserRole] = None
    command: Optional[str] = Field(None, min_length=1, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
