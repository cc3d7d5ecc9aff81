"""
Notification repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from rentals.repositories.base import BaseRepository
from rentals.models.notification import Notification
from rentals.database import utcnow
from typing import List, Tuple
import uuid


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)
    
    async def list_for_user(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Notification], int]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        return await self.paginate(query.order_by(Notification.created_at.desc()), skip, limit)
    
    async def unread_count(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0
    
    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        try:
            result = await self.db.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                .values(is_read=True, read_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount
        except Exception:
            await self.db.rollback()
            raise
