"""
Pydantic schemas for admin moderation endpoints.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from rentals.schemas.common import PaginatedResponse
from rentals.schemas.property import PropertySummary
from rentals.schemas.booking import BookingResponse
from rentals.schemas.review import ReviewResponse


class PropertyApproval(BaseModel):
    admin_notes: Optional[str] = Field(None, max_length=2000)


class PropertyRejection(BaseModel):
    reason: str = Field(..., max_length=2000)
    admin_notes: Optional[str] = Field(None, max_length=2000)
    
    @field_validator("reason")
    @classmethod
    def reason_required(cls, v):
        if not v.strip():
            raise ValueError("A rejection reason is required")
        return v.strip()


class AdminBookingCancel(BaseModel):
    cancellation_reason: str = Field(..., max_length=2000)
    admin_notes: Optional[str] = Field(None, max_length=2000)
    
    @field_validator("cancellation_reason")
    @classmethod
    def reason_required(cls, v):
        if not v.strip():
            raise ValueError("A cancellation reason is required")
        return v.strip()


class AdminPropertyListResponse(PaginatedResponse):
    properties: List[PropertySummary]


class AdminBookingListResponse(PaginatedResponse):
    bookings: List[BookingResponse]


class AdminReviewListResponse(PaginatedResponse):
    reviews: List[ReviewResponse]


class AdminLogResponse(BaseModel):
    id: str
    admin_id: str
    admin_email: Optional[str] = None
    action: str
    target_type: str
    target_id: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


class AdminLogListResponse(PaginatedResponse):
    logs: List[AdminLogResponse]
