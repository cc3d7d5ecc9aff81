"""
Notification service.
Other services call notify() to leave in-app messages for users.
"""

from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.repositories.notification import NotificationRepository
from rentals.models.notification import Notification, NotificationType
from rentals.models.user import User
from rentals.database import utcnow
from rentals.utils.exceptions import NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.notification_repo = NotificationRepository(db_session)
    
    async def notify(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.SYSTEM,
        related_id: Optional[uuid.UUID] = None,
        related_type: Optional[str] = None
    ) -> Notification:
        notification = await self.notification_repo.create({
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": type,
            "related_id": related_id,
            "related_type": related_type,
        })
        logger.debug(f"Notification {notification.id} sent to user {user_id}: {title}")
        return notification
    
    async def list_notifications(
        self,
        user: User,
        unread_only: bool = False,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Notification], int, int]:
        """
        Returns:
            Tuple of (notifications, total, unread_count)
        """
        notifications, total = await self.notification_repo.list_for_user(
            user.id, unread_only=unread_only, skip=(page - 1) * page_size, limit=page_size
        )
        unread = await self.notification_repo.unread_count(user.id)
        return notifications, total, unread
    
    async def mark_read(self, user: User, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get_by_id(notification_id)
        if not notification or notification.user_id != user.id:
            raise NotFoundError("Notification", str(notification_id))
        if notification.is_read:
            return notification
        return await self.notification_repo.save(notification, {"is_read": True, "read_at": utcnow()})
    
    async def mark_all_read(self, user: User) -> int:
        count = await self.notification_repo.mark_all_read(user.id)
        logger.info(f"Marked {count} notifications read for user {user.id}")
        return count
