"""
Pydantic schemas for property requests and responses.
Handles listing CRUD, search filters and validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime, time
from decimal import Decimal
from rentals.models.property import PropertyType, PropertyStatus
from rentals.models.blocked_date import BlockReason
from rentals.schemas.common import PaginatedResponse
from rentals.schemas.image import PropertyImageResponse
from rentals.schemas.amenity import AmenityResponse
from rentals.schemas.user import UserSummary
import uuid


class PropertyBase(BaseModel):
    """Base property schema with common fields."""
    
    title: str = Field(
        ...,
        min_length=5,
        max_length=255,
        description="Listing title",
        examples=["Seaside cottage with private garden"]
    )
    description: str = Field(..., min_length=20, max_length=5000)
    property_type: PropertyType = Field(..., examples=["cottage"])
    
    address: str = Field(..., min_length=3, max_length=255)
    city: str = Field(..., min_length=1, max_length=100, examples=["Lisbon"])
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = Field(..., min_length=2, max_length=100, examples=["Portugal"])
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    
    max_guests: int = Field(..., ge=1, le=50, description="Maximum number of guests")
    bedrooms: int = Field(..., ge=0, le=50)
    bathrooms: Decimal = Field(..., ge=0, le=50)
    beds: int = Field(..., ge=0, le=100)
    
    price_per_night: Decimal = Field(..., gt=0, description="Nightly rate per guest", examples=[120.00])
    cleaning_fee: Decimal = Field(Decimal("0.00"), ge=0)
    security_deposit: Decimal = Field(Decimal("0.00"), ge=0)
    
    min_nights: int = Field(1, ge=1)
    max_nights: int = Field(365, ge=0, description="0 disables the limit")
    check_in_time: time = Field(time(15, 0))
    check_out_time: time = Field(time(11, 0))
    advance_booking_days: int = Field(365, ge=0, description="0 disables the limit")
    is_instant_book: bool = False
    
    @field_validator("title", "description", "address", "city", "country")
    @classmethod
    def strip_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()
    
    @model_validator(mode="after")
    def validate_night_limits(self):
        if self.max_nights and self.max_nights < self.min_nights:
            raise ValueError("max_nights cannot be lower than min_nights")
        return self


class PropertyCreate(PropertyBase):
    """Schema for creating a listing. Hosts may only start in draft or pending."""
    
    status: Optional[PropertyStatus] = Field(None, description="draft or pending; anything else falls back to draft")
    amenity_ids: List[uuid.UUID] = Field(default_factory=list)


class PropertyUpdate(BaseModel):
    """Schema for updating a listing; every field is optional."""
    
    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=20, max_length=5000)
    property_type: Optional[PropertyType] = None
    address: Optional[str] = Field(None, min_length=3, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, min_length=2, max_length=100)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    max_guests: Optional[int] = Field(None, ge=1, le=50)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=50)
    beds: Optional[int] = Field(None, ge=0, le=100)
    price_per_night: Optional[Decimal] = Field(None, gt=0)
    cleaning_fee: Optional[Decimal] = Field(None, ge=0)
    security_deposit: Optional[Decimal] = Field(None, ge=0)
    min_nights: Optional[int] = Field(None, ge=1)
    max_nights: Optional[int] = Field(None, ge=0)
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    advance_booking_days: Optional[int] = Field(None, ge=0)
    is_instant_book: Optional[bool] = None
    status: Optional[PropertyStatus] = None
    amenity_ids: Optional[List[uuid.UUID]] = None
    
    @field_validator("title", "description", "address", "city", "country")
    @classmethod
    def strip_text(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip() if v else v


class PropertySummary(BaseModel):
    """Listing card used in search results."""
    
    id: str
    title: str
    property_type: PropertyType
    city: str
    country: str
    price_per_night: float
    max_guests: int
    bedrooms: int
    bathrooms: float
    average_rating: float
    total_reviews: int
    is_instant_book: bool
    status: PropertyStatus
    primary_image: Optional[str] = None
    host_id: str


class PropertyResponse(BaseModel):
    """Full listing details."""
    
    id: str
    host_id: str
    title: str
    description: str
    property_type: PropertyType
    address: str
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_guests: int
    bedrooms: int
    bathrooms: float
    beds: int
    price_per_night: float
    cleaning_fee: float
    security_deposit: float
    min_nights: int
    max_nights: int
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    advance_booking_days: int
    is_instant_book: bool
    status: PropertyStatus
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    total_bookings: int
    total_reviews: int
    average_rating: float
    images: List[PropertyImageResponse] = Field(default_factory=list)
    amenities: List[AmenityResponse] = Field(default_factory=list)
    host: Optional[UserSummary] = None
    recent_reviews: List[dict] = Field(default_factory=list, description="Five most recent visible reviews")
    created_at: datetime
    updated_at: datetime


class PropertyListResponse(PaginatedResponse):
    properties: List[PropertySummary]


class PropertyAmenitiesUpdate(BaseModel):
    amenity_ids: List[uuid.UUID] = Field(default_factory=list)


class PropertyStatusHistoryResponse(BaseModel):
    id: str
    property_id: str
    old_status: PropertyStatus
    new_status: PropertyStatus
    changed_by_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class BlockedDateCreate(BaseModel):
    """Block one or more calendar days."""
    
    dates: List[date] = Field(..., min_length=1, max_length=366)
    reason: BlockReason = BlockReason.OTHER
    notes: Optional[str] = Field(None, max_length=1000)


class BlockedDateResponse(BaseModel):
    id: str
    property_id: str
    blocked_date: date
    reason: BlockReason
    notes: Optional[str] = None
