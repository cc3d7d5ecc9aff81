"""
Favorite repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentals.repositories.base import BaseRepository
from rentals.models.favorite import Favorite
from typing import Optional, List
import uuid


class FavoriteRepository(BaseRepository[Favorite]):
    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)
    
    async def get_for_user(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Favorite]:
        result = await self.db.execute(
            select(Favorite).where(Favorite.user_id == user_id, Favorite.property_id == property_id)
        )
        return result.scalar_one_or_none()
    
    async def list_for_user(self, user_id: uuid.UUID) -> List[Favorite]:
        result = await self.db.execute(
            select(Favorite).where(Favorite.user_id == user_id).order_by(Favorite.created_at.desc())
        )
        return list(result.scalars().all())
