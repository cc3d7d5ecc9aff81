"""
Calendar days a host has blocked on a property.
"""

from sqlalchemy import Date, Text, ForeignKey, Enum as SQLEnum, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from rentals.database import Base
from datetime import date
import enum
import uuid
from typing import Optional


class BlockReason(str, enum.Enum):
    BOOKED = "booked"
    MAINTENANCE = "maintenance"
    PERSONAL = "personal"
    OTHER = "other"


class BlockedDate(Base):
    """A single unavailable night on a property."""
    
    __tablename__ = "blocked_dates"
    
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    blocked_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reason: Mapped[BlockReason] = mapped_column(SQLEnum(BlockReason), nullable=False, default=BlockReason.OTHER)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    __table_args__ = (
        UniqueConstraint("property_id", "blocked_date", name="uq_blocked_dates_property_date"),
    )
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "blocked_date": self.blocked_date.isoformat(),
            "reason": self.reason.value,
            "notes": self.notes,
        }
