"""
Pydantic schemas for reviews and moderation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from rentals.models.review import ReviewType, ReviewModeration
from rentals.schemas.common import PaginatedResponse
from rentals.schemas.user import UserSummary


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Overall rating from 1 to 5")
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=5000)
    cleanliness_rating: Optional[int] = Field(None, ge=1, le=5)
    accuracy_rating: Optional[int] = Field(None, ge=1, le=5)
    check_in_rating: Optional[int] = Field(None, ge=1, le=5)
    communication_rating: Optional[int] = Field(None, ge=1, le=5)
    location_rating: Optional[int] = Field(None, ge=1, le=5)
    value_rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewResponse(BaseModel):
    id: str
    booking_id: str
    property_id: str
    reviewer_id: str
    reviewee_id: str
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    cleanliness_rating: Optional[int] = None
    accuracy_rating: Optional[int] = None
    check_in_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    location_rating: Optional[int] = None
    value_rating: Optional[int] = None
    review_type: ReviewType
    is_published: bool
    is_flagged: bool
    flag_reason: Optional[str] = None
    admin_action: ReviewModeration
    moderated_at: Optional[datetime] = None
    response: Optional[str] = None
    response_date: Optional[datetime] = None
    reviewer: Optional[UserSummary] = None
    created_at: datetime


class ReviewListResponse(PaginatedResponse):
    reviews: List[ReviewResponse]


class ReviewModerationRequest(BaseModel):
    admin_action: ReviewModeration
    notes: Optional[str] = Field(None, max_length=2000)


class RatingRecalculationResponse(BaseModel):
    properties_updated: int
    hosts_updated: int
