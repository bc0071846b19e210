# maintdesk/schemas/imports.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from maintdesk.models.ticket import TicketPriority, TicketStatus

class ImportedTicketRow(BaseModel):
    """One spreadsheet row after vocabulary mapping, before it is persisted."""
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: str = Field(..., min_length=3, max_length=200)
    command: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=100)
    priority: TicketPriority
    status: TicketStatus
    description: str = Field(..., min_length=5, max_length=2000)
    is_recurring: bool
    open_date: datetime
    close_date: Optional[datetime] = None
    assigned_technician: Optional[str] = Field(None, max_length=100)

class ImportRowError(BaseModel):
    row: int
    message: str

class ImportResultResponse(BaseModel):
    total_rows: int
    imported_count: int
    error_count: int
    errors: list[ImportRowError]
    success_rate: float
