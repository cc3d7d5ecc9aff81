"""
Amenity repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from rentals.repositories.base import BaseRepository
from rentals.models.amenity import Amenity, AmenityCategory
from rentals.models.property import property_amenities
from typing import Optional, List, Dict, Any
import uuid


class AmenityRepository(BaseRepository[Amenity]):
    def __init__(self, db: AsyncSession):
        super().__init__(Amenity, db)
    
    async def get_by_name(self, name: str) -> Optional[Amenity]:
        result = await self.db.execute(select(Amenity).where(func.lower(Amenity.name) == name.strip().lower()))
        return result.scalar_one_or_none()
    
    async def list_amenities(
        self,
        category: Optional[AmenityCategory] = None,
        include_inactive: bool = False
    ) -> List[Amenity]:
        query = select(Amenity)
        if not include_inactive:
            query = query.where(Amenity.is_active.is_(True))
        if category:
            query = query.where(Amenity.category == category)
        result = await self.db.execute(query.order_by(Amenity.category, Amenity.name))
        return list(result.scalars().all())
    
    async def get_many(self, amenity_ids: List[uuid.UUID]) -> List[Amenity]:
        if not amenity_ids:
            return []
        result = await self.db.execute(select(Amenity).where(Amenity.id.in_(set(amenity_ids))))
        return list(result.scalars().all())
    
    async def usage_count(self, amenity_id: uuid.UUID) -> int:
        """Number of properties the amenity is assigned to."""
        result = await self.db.execute(
            select(func.count()).select_from(property_amenities).where(property_amenities.c.amenity_id == amenity_id)
        )
        return result.scalar() or 0
    
    async def usage_stats(self) -> List[Dict[str, Any]]:
        """Per-amenity property counts, most used first."""
        usage = func.count(property_amenities.c.property_id)
        result = await self.db.execute(
            select(Amenity, usage.label("property_count"))
            .outerjoin(property_amenities, property_amenities.c.amenity_id == Amenity.id)
            .group_by(Amenity.id)
            .order_by(usage.desc(), Amenity.name)
        )
        return [
            {**amenity.to_dict(), "property_count": property_count}
            for amenity, property_count in result.all()
        ]
