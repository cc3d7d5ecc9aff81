"""
Blocked date repository for host calendar management.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentals.repositories.base import BaseRepository
from rentals.models.blocked_date import BlockedDate
from datetime import date
from typing import Optional, List
import uuid


class BlockedDateRepository(BaseRepository[BlockedDate]):
    def __init__(self, db: AsyncSession):
        super().__init__(BlockedDate, db)
    
    async def in_range(
        self,
        property_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[BlockedDate]:
        """Blocked days in [start, end), or all of them when no bounds are given."""
        query = select(BlockedDate).where(BlockedDate.property_id == property_id)
        if start:
            query = query.where(BlockedDate.blocked_date >= start)
        if end:
            query = query.where(BlockedDate.blocked_date < end)
        result = await self.db.execute(query.order_by(BlockedDate.blocked_date))
        return list(result.scalars().all())
    
    async def get_for_date(self, property_id: uuid.UUID, day: date) -> Optional[BlockedDate]:
        result = await self.db.execute(
            select(BlockedDate).where(BlockedDate.property_id == property_id, BlockedDate.blocked_date == day)
        )
        return result.scalar_one_or_none()
