"""
Audit log of administrator actions.
"""

from sqlalchemy import String, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.user import User


class AdminActionLog(Base):
    """One row per mutating admin action."""
    
    __tablename__ = "admin_actions_log"
    
    admin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    target_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    admin: Mapped["User"] = relationship("User", lazy="selectin")
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "admin_id": str(self.admin_id),
            "admin_email": self.admin.email if self.admin else None,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": str(self.target_id) if self.target_id else None,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
