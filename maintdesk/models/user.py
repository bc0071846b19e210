# maintdesk/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, Index, Enum, Uuid
import uuid
import enum
from .base import Base, TimestampMixin

class UserRole(str, enum.Enum):
    """User roles, ordered viewer < technician < admin."""
    VIEWER = "viewer"
    TECHNICIAN = "technician"
    ADMIN = "admin"

class User(Base, TimestampMixin):
    """User entity - assigned to one command and unit."""
    __tablename__ = "user"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.VIEWER,
    )
    command = Column(String(100), nullable=False)
    unit = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    
    __table_args__ = (
        Index("idx_user_role_active", "role", "is_active"),
    )
    
    def __repr__(self):
        return f"<User {self.username}>"
