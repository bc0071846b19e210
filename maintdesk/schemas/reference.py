# maintdesk/schemas/reference.py
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

class CreateCommandRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field("", max_length=500)

class CreateUnitRequest(CreateCommandRequest):
    pass

class CommandResponse(BaseModel):
    id: UUID
    name: str
    description: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UnitResponse(BaseModel):
    id: UUID
    name: str
    command_id: UUID
    command_name: Optional[str] = None
    description: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
