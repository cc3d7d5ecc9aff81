"""
PropertyImage model for managing property image uploads.
Stores file metadata, gallery ordering and the primary-image flag.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from rentals.models.property import Property


class PropertyImage(Base):
    """
    PropertyImage model for uploaded listing photos.
    Each property has at most one primary image.
    """
    
    __tablename__ = "property_images"
    
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )
    
    # File information
    image_url: Mapped[str] = mapped_column(String(500), nullable=False, comment="Public URL of the stored file")
    file_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        unique=True,
        comment="Path of the stored file relative to the upload directory"
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False, comment="Original filename")
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, comment="File size in bytes")
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    
    # Presentation
    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    
    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="raise"
    )
    
    __table_args__ = (
        Index("ix_property_images_property_order", "property_id", "display_order"),
    )
    
    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, filename={self.filename})>"
    
    def to_dict(self) -> dict:
        """Convert property image to dictionary."""
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "image_url": self.image_url,
            "filename": self.filename,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "width": self.width,
            "height": self.height,
            "alt_text": self.alt_text,
            "display_order": self.display_order,
            "is_primary": self.is_primary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
