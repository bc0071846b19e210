# maintdesk/schemas/ticket.py
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

from maintdesk.models.ticket import TicketPriority, TicketStatus

SUBJECT_DEFAULT_LENGTH = 100

class CreateTicketRequest(BaseModel):
    """Create ticket request. Omitted command/unit default to the creator's own."""
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: Optional[str] = Field(None, min_length=3, max_length=200)
    command: Optional[str] = Field(None, min_length=1, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=100)
    priority: TicketPriority
    description: str = Field(..., min_length=5, max_length=2000)
    is_recurring: bool = False

class UpdateTicketRequest(BaseModel):
    """Partial update; only fields present in the payload are applied."""
    model_config = ConfigDict(str_strip_whitespace=True)

    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    description: Optional[str] = Field(None, min_length=5, max_length=2000)
    is_recurring: Optional[bool] = None
    assigned_technician: Optional[str] = Field(None, min_length=1, max_length=100)

class CommentRequest(BaseModel):
    """Add comment to ticket."""
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=500)

class CommentResponse(BaseModel):
    author: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TicketSummaryResponse(BaseModel):
    """Ticket as shown in lists (no comments)."""
    id: UUID
    ticket_number: int
    subject: str
    command: str
    unit: str
    priority: TicketPriority
    status: TicketStatus
    is_recurring: bool
    description: str
    open_date: datetime
    close_date: Optional[datetime]
    assigned_technician: Optional[str]
    created_by: str
    last_modified_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TicketResponse(TicketSummaryResponse):
    """Full ticket with its comment thread."""
    comments: list[CommentResponse] = []
    is_deleted: bool
    deleted_at: Optional[datetime]

class RecentTicketResponse(BaseModel):
    """Truncated projection for the dashboard."""
    id: UUID
    ticket_number: int
    subject: str
    command: str
    unit: str
    priority: TicketPriority
    status: TicketStatus
    description: str
    open_date: datetime
    is_recurring: bool
    created_by: str

    model_config = ConfigDict(from_attributes=True)

class TicketStatsResponse(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    operational_priority: int = 0
    recurring: int = 0

class DashboardSummaryResponse(BaseModel):
    stats: TicketStatsResponse
    recent_tickets: list[RecentTicketResponse]

SortField = Literal["ticket_number", "open_date", "created_at", "status", "priority"]

class TicketFilters(BaseModel):
    """Caller-supplied constraints; always ANDed with the principal's scope."""
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    command: Optional[str] = None
    unit: Optional[str] = None
    ticket_number: Optional[int] = None
    is_recurring: Optional[bool] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    sort_by: SortField = "ticket_number"
    sort_order: Literal["asc", "desc"] = "desc"
