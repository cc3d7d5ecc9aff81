"""
Image repository for property gallery management.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from rentals.repositories.base import BaseRepository
from rentals.models.image import PropertyImage
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for property images ordered by display_order."""
    
    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)
    
    async def get_by_property(self, property_id: uuid.UUID) -> List[PropertyImage]:
        result = await self.db.execute(
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.display_order.asc(), PropertyImage.created_at.asc())
        )
        return list(result.scalars().all())
    
    async def get_for_property(self, property_id: uuid.UUID, image_id: uuid.UUID) -> Optional[PropertyImage]:
        """Get an image only if it belongs to the given property."""
        result = await self.db.execute(
            select(PropertyImage).where(
                PropertyImage.id == image_id,
                PropertyImage.property_id == property_id,
            )
        )
        return result.scalar_one_or_none()
    
    async def next_display_order(self, property_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.max(PropertyImage.display_order)).where(PropertyImage.property_id == property_id)
        )
        current = result.scalar()
        return 0 if current is None else current + 1
    
    async def has_primary(self, property_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(func.count(PropertyImage.id)).where(
                PropertyImage.property_id == property_id,
                PropertyImage.is_primary.is_(True),
            )
        )
        return (result.scalar() or 0) > 0
    
    async def set_primary(self, property_id: uuid.UUID, image_id: uuid.UUID) -> None:
        """Make one image primary and clear the flag on the rest of the gallery."""
        try:
            await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .values(is_primary=(PropertyImage.id == image_id))
                .execution_options(synchronize_session="fetch")
            )
            await self.db.commit()
            logger.debug(f"Primary image for property {property_id} set to {image_id}")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set primary image {image_id}: {e}")
            raise
    
    async def reorder(self, images: List[PropertyImage]) -> List[PropertyImage]:
        """Persist display_order following the order of the given list."""
        try:
            for position, image in enumerate(images):
                image.display_order = position
            await self.db.commit()
            return images
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to reorder images: {e}")
            raise
