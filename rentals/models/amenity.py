"""
Amenity catalogue model.
Amenities attach to properties through the property_amenities join table.
"""

from sqlalchemy import String, Text, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from rentals.database import Base
import enum
from typing import Optional


class AmenityCategory(str, enum.Enum):
    BASIC = "basic"
    SAFETY = "safety"
    LUXURY = "luxury"
    OUTDOOR = "outdoor"
    FAMILY = "family"


class Amenity(Base):
    """A named feature such as WiFi or a pool."""
    
    __tablename__ = "amenities"
    
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[AmenityCategory] = mapped_column(
        SQLEnum(AmenityCategory),
        nullable=False,
        default=AmenityCategory.BASIC,
        index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    
    def __repr__(self) -> str:
        return f"<Amenity(id={self.id}, name={self.name})>"
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "icon": self.icon,
            "category": self.category.value,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
