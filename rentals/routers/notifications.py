"""
In-app notification endpoints.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, Query, Path

from rentals.models.user import User
from rentals.services.notification import NotificationService
from rentals.schemas.notification import NotificationResponse, NotificationListResponse
from rentals.schemas.common import MessageResponse, pagination_meta
from rentals.utils.dependencies import get_current_active_user, get_notification_service
from rentals.config import settings


router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications")
async def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service)
) -> NotificationListResponse:
    page_size = min(limit, settings.max_page_size)
    notifications, total, unread = await notification_service.list_notifications(
        current_user, unread_only=unread_only, page=page, page_size=page_size
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n.to_dict()) for n in notifications],
        unread_count=unread,
        **pagination_meta(total, page, page_size)
    )


@router.post("/read-all", response_model=MessageResponse, summary="Mark all notifications read")
async def mark_all_read(
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service)
) -> MessageResponse:
    count = await notification_service.mark_all_read(current_user)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Mark notification read")
async def mark_read(
    notification_id: UUID = Path(..., description="Notification ID"),
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service)
) -> NotificationResponse:
    notification = await notification_service.mark_read(current_user, notification_id)
    return NotificationResponse.model_validate(notification.to_dict())
