"""
Pydantic schemas for notifications and favorites.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from rentals.models.notification import NotificationType
from rentals.schemas.common import PaginatedResponse


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(PaginatedResponse):
    notifications: List[NotificationResponse]
    unread_count: int


class FavoriteResponse(BaseModel):
    id: str
    user_id: str
    property_id: str
    property: Optional[dict] = None
    created_at: datetime


class FavoriteListResponse(BaseModel):
    favorites: List[FavoriteResponse]
