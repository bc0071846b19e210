# maintdesk/models/command.py
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid
from .base import Base, TimestampMixin

class Command(Base, TimestampMixin):
    """Command entity - top of the organizational hierarchy."""
    __tablename__ = "command"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    
    # Relationships
    units = relationship("Unit", back_populates="command", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Command {self.name}>"

class Unit(Base, TimestampMixin):
    """Unit entity - nested under exactly one command."""
    __tablename__ = "unit"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    command_id = Column(Uuid, ForeignKey("command.id"), nullable=False, index=True)
    description = Column(String(500), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    
    command = relationship("Command", back_populates="units")
    
    __table_args__ = (
        UniqueConstraint("command_id", "name", name="uq_unit_command_name"),
    )
    
    @property
    def command_name(self) -> str:
        return self.command.name if self.command else None
    
    def __repr__(self):
        return f"<Unit {self.name}>"
