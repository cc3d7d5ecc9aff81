"""
In-app notification model.
"""

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from rentals.database import Base
from datetime import datetime
import enum
import uuid
from typing import Optional


class NotificationType(str, enum.Enum):
    BOOKING = "booking"
    REVIEW = "review"
    MESSAGE = "message"
    PAYMENT = "payment"
    SYSTEM = "system"


class Notification(Base):
    """Notification shown to a single user."""
    
    __tablename__ = "notifications"
    
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(SQLEnum(NotificationType), nullable=False, default=NotificationType.SYSTEM)
    related_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    related_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "related_id": str(self.related_id) if self.related_id else None,
            "related_type": self.related_type,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
