"""
Pydantic schemas for bookings, availability and pricing.
Dates arrive as YYYY-MM-DD strings and are parsed by the booking service so
malformed values produce the booking-specific error message.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from rentals.models.booking import BookingStatus, PaymentStatus, CancelledBy
from rentals.models.blocked_date import BlockReason
from rentals.schemas.common import PaginatedResponse
from rentals.schemas.user import UserSummary
import uuid


class PriceBreakdown(BaseModel):
    nights: int
    price_per_night: float
    guests: int
    base_price: float
    cleaning_fee: float
    service_fee: float
    security_deposit: float
    total_amount: float


class BookingCreate(BaseModel):
    """Schema for requesting a stay."""
    
    property_id: uuid.UUID
    check_in_date: str = Field(..., description="Arrival date (YYYY-MM-DD)", examples=["2030-07-01"])
    check_out_date: str = Field(..., description="Departure date (YYYY-MM-DD)", examples=["2030-07-05"])
    guests_count: int = Field(1, ge=1, le=50)
    special_requests: Optional[str] = Field(None, max_length=2000)
    guest_notes: Optional[str] = Field(None, max_length=2000)


class PricingRequest(BaseModel):
    property_id: uuid.UUID
    check_in_date: str
    check_out_date: str
    guests_count: Optional[int] = Field(None, ge=1, le=50, description="Defaults to the property's max_guests")


class PricingResponse(BaseModel):
    property_id: str
    check_in_date: date
    check_out_date: date
    pricing: PriceBreakdown


class AvailabilityProperty(BaseModel):
    id: str
    title: str
    max_guests: int
    is_instant_book: bool


class AvailabilityDetails(BaseModel):
    check_in_date: date
    check_out_date: date
    guests_count: int
    nights: int
    pricing: PriceBreakdown


class AvailabilityResponse(BaseModel):
    available: bool
    property: AvailabilityProperty
    booking_details: AvailabilityDetails


class BookedRange(BaseModel):
    booking_id: str
    check_in_date: date
    check_out_date: date
    status: BookingStatus


class BlockedDay(BaseModel):
    date: date
    reason: BlockReason


class BookedDatesResponse(BaseModel):
    property_id: str
    start_date: date
    end_date: date
    booked_ranges: List[BookedRange]
    blocked_dates: List[BlockedDay]


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    host_notes: Optional[str] = Field(None, max_length=2000)


class BookingCancelRequest(BaseModel):
    cancellation_reason: Optional[str] = Field(None, max_length=2000)


class BookingPermissions(BaseModel):
    can_cancel: bool
    can_review: bool
    can_update_status: bool


class BookingResponse(BaseModel):
    id: str
    property_id: str
    guest_id: str
    host_id: str
    check_in_date: date
    check_out_date: date
    nights: int
    guests_count: int
    base_price: float
    cleaning_fee: float
    security_deposit: float
    service_fee: float
    total_amount: float
    refund_amount: float
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    special_requests: Optional[str] = None
    host_notes: Optional[str] = None
    guest_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    property: Optional[Dict[str, Any]] = None
    guest: Optional[UserSummary] = None
    host: Optional[UserSummary] = None
    conversation_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookingDetailResponse(BookingResponse):
    permissions: BookingPermissions


class BookingListResponse(PaginatedResponse):
    bookings: List[BookingResponse]
