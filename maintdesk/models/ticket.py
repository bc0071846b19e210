# maintdesk/models/ticket.py
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index, Enum, Uuid
)
from sqlalchemy.orm import relationship
import uuid
import enum
from .base import Base, TimestampMixin

class TicketStatus(str, enum.Enum):
    """Ticket status. close_date is set exactly while RESOLVED."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"

class TicketPriority(str, enum.Enum):
    """Ticket priority, ordered by severity."""
    NORMAL = "normal"
    URGENT = "urgent"
    OPERATIONAL = "operational"

PRIORITY_SEVERITY = {
    TicketPriority.NORMAL: 1,
    TicketPriority.URGENT: 2,
    TicketPriority.OPERATIONAL: 3,
}

def _enum_column(enum_cls):
    return Enum(enum_cls, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e])

class Ticket(Base, TimestampMixin):
    """Maintenance ticket (fault report)."""
    __tablename__ = "ticket"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_number = Column(Integer, nullable=False, unique=True)
    subject = Column(String(200), nullable=False)
    command = Column(String(100), nullable=False)
    unit = Column(String(100), nullable=False)
    priority = Column(_enum_column(TicketPriority), nullable=False, default=TicketPriority.NORMAL)
    status = Column(_enum_column(TicketStatus), nullable=False, default=TicketStatus.OPEN)
    is_recurring = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=False)
    open_date = Column(DateTime, nullable=False)
    close_date = Column(DateTime, nullable=True)
    assigned_technician = Column(String(100), nullable=True)
    
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_by = Column(String(50), nullable=False)
    last_modified_by = Column(String(50), nullable=True)
    
    # Append-only; there is no update or delete path for comments
    comments = relationship(
        "TicketComment",
        back_populates="ticket",
        order_by="TicketComment.id",
        cascade="all, delete-orphan",
    )
    
    __table_args__ = (
        Index("idx_ticket_scope", "is_deleted", "command", "unit"),
        Index("idx_ticket_status", "status"),
        Index("idx_ticket_created_at", "created_at"),
        Index("idx_ticket_open_date", "open_date"),
    )
    
    def set_status(self, status: TicketStatus, at: datetime) -> None:
        """Change status, keeping close_date set iff the ticket is resolved."""
        self.status = status
        if status == TicketStatus.RESOLVED:
            if self.close_date is None:
                self.close_date = at
        else:
            self.close_date = None
    
    def append_comment(self, author: str, content: str, at: datetime) -> "TicketComment":
        comment = TicketComment(author=author, content=content, created_at=at)
        self.comments.append(comment)
        return comment
    
    def __repr__(self):
        return f"<Ticket {self.ticket_number}>"

class TicketComment(Base):
    """Comment owned by a ticket."""
    __tablename__ = "ticket_comment"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Uuid, ForeignKey("ticket.id"), nullable=False, index=True)
    author = Column(String(50), nullable=False)
    content = Column(String(500), nullable=False)
    created_at = Column(DateTime, nullable=False)
    
    ticket = relationship("Ticket", back_populates="comments")
    
    def __repr__(self):
        return f"<TicketComment {self.id} on {self.ticket_id}>"

class TicketCounter(Base):
    """Named sequence row; holds the last assigned value."""
    __tablename__ = "ticket_counter"
    
    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
    
    def __repr__(self):
        return f"<TicketCounter {self.name}={self.value}>"
