"""
Pydantic schemas for dashboard statistics and user administration.
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional


class HostStats(BaseModel):
    total_properties: int
    total_bookings: int
    total_revenue: float
    monthly_revenue: float
    avg_rating: float
    total_reviews: int


class AdminStats(BaseModel):
    total_users: int
    total_properties: int
    total_bookings: int
    total_revenue: float
    pending_properties: int
    new_users_this_month: int
    new_users_last_month: int


class UserStatusUpdate(BaseModel):
    status: Literal["active", "inactive", "suspended"]
    reason: Optional[str] = Field(None, max_length=1000)
