"""
Property model for vacation rental listings.
Handles listing data, booking rules, moderation state and amenity associations.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, DateTime, Time, Enum as SQLEnum,
    ForeignKey, Table, Column, Uuid, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
from datetime import datetime, time
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.user import User
    from rentals.models.image import PropertyImage
    from rentals.models.amenity import Amenity


class PropertyType(str, enum.Enum):
    """Kinds of rentable places."""
    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"
    CABIN = "cabin"
    COTTAGE = "cottage"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    OTHER = "other"


class PropertyStatus(str, enum.Enum):
    """Listing lifecycle states."""
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Statuses a host may set on their own listing; everything else is an admin decision
HOST_SETTABLE_STATUSES = (PropertyStatus.DRAFT, PropertyStatus.PENDING)

# Statuses visible to anonymous visitors on the detail page
PUBLIC_STATUSES = (PropertyStatus.ACTIVE, PropertyStatus.PENDING)


property_amenities = Table(
    "property_amenities",
    Base.metadata,
    Column("property_id", Uuid(as_uuid=True), ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
    Column("amenity_id", Uuid(as_uuid=True), ForeignKey("amenities.id", ondelete="CASCADE"), primary_key=True),
)


class Property(Base):
    """
    Property model for managing rental listings.
    Pricing and booking-rule columns feed availability checks and quotes.
    """
    
    __tablename__ = "properties"
    
    host_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the host who owns this property"
    )
    
    # Basic information
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(SQLEnum(PropertyType), nullable=False, index=True)
    
    # Location
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(11, 8), nullable=True)
    
    # Capacity
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[Decimal] = mapped_column(Numeric(3, 1), nullable=False)
    beds: Mapped[int] = mapped_column(Integer, nullable=False)
    
    # Pricing
    price_per_night: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Nightly rate per guest"
    )
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    
    # Booking rules
    min_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=365, comment="0 disables the limit")
    check_in_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(15, 0))
    check_out_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(11, 0))
    advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False, default=365, comment="0 disables the limit")
    is_instant_book: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    
    # Status and moderation
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.DRAFT,
        index=True
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    # Aggregates maintained by the booking and review services
    total_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0.00"), index=True)
    
    # Relationships
    host: Mapped["User"] = relationship(
        "User",
        back_populates="properties",
        foreign_keys=[host_id],
        lazy="selectin"
    )
    
    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order.asc()"
    )
    
    amenities: Mapped[List["Amenity"]] = relationship(
        "Amenity",
        secondary=property_amenities,
        lazy="selectin",
        order_by="Amenity.name"
    )
    
    __table_args__ = (
        Index("ix_properties_status_price", "status", "price_per_night"),
    )
    
    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., status={self.status})>"
    
    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """Get the primary image for this property."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None
    
    @property
    def is_bookable(self) -> bool:
        return self.status == PropertyStatus.ACTIVE
    
    def to_summary(self) -> dict:
        """Compact listing card used in search results and embedded references."""
        primary = self.primary_image
        return {
            "id": str(self.id),
            "title": self.title,
            "property_type": self.property_type.value,
            "city": self.city,
            "country": self.country,
            "price_per_night": float(self.price_per_night),
            "max_guests": self.max_guests,
            "bedrooms": self.bedrooms,
            "bathrooms": float(self.bathrooms),
            "average_rating": float(self.average_rating or 0),
            "total_reviews": self.total_reviews or 0,
            "is_instant_book": self.is_instant_book,
            "status": self.status.value,
            "primary_image": primary.image_url if primary else None,
            "host_id": str(self.host_id),
        }
    
    def to_dict(self) -> dict:
        """
        Convert property to dictionary with images, amenities and host summary.
        
        Returns:
            Dictionary representation of property
        """
        return {
            "id": str(self.id),
            "host_id": str(self.host_id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type.value,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "max_guests": self.max_guests,
            "bedrooms": self.bedrooms,
            "bathrooms": float(self.bathrooms),
            "beds": self.beds,
            "price_per_night": float(self.price_per_night),
            "cleaning_fee": float(self.cleaning_fee or 0),
            "security_deposit": float(self.security_deposit or 0),
            "min_nights": self.min_nights,
            "max_nights": self.max_nights,
            "check_in_time": self.check_in_time.strftime("%H:%M") if self.check_in_time else None,
            "check_out_time": self.check_out_time.strftime("%H:%M") if self.check_out_time else None,
            "advance_booking_days": self.advance_booking_days,
            "is_instant_book": self.is_instant_book,
            "status": self.status.value,
            "admin_notes": self.admin_notes,
            "rejection_reason": self.rejection_reason,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "total_bookings": self.total_bookings or 0,
            "total_reviews": self.total_reviews or 0,
            "average_rating": float(self.average_rating or 0),
            "images": [image.to_dict() for image in self.images],
            "amenities": [amenity.to_dict() for amenity in self.amenities],
            "host": self.host.to_summary() if self.host else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class PropertyStatusHistory(Base):
    """Audit trail of listing status changes."""
    
    __tablename__ = "property_status_history"
    
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    old_status: Mapped[PropertyStatus] = mapped_column(SQLEnum(PropertyStatus), nullable=False)
    new_status: Mapped[PropertyStatus] = mapped_column(SQLEnum(PropertyStatus), nullable=False)
    changed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "old_status": self.old_status.value,
            "new_status": self.new_status.value,
            "changed_by_id": str(self.changed_by_id) if self.changed_by_id else None,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
