"""
Favorite model linking users to properties they saved.
"""

from sqlalchemy import ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.property import Property


class Favorite(Base):
    __tablename__ = "favorites"
    
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")
    
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "property_id": str(self.property_id),
            "property": self.property_rel.to_summary() if self.property_rel else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
