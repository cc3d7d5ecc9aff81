"""
Review repository with rating aggregation queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from rentals.repositories.base import BaseRepository
from rentals.models.review import Review, ReviewType, ReviewModeration, HIDDEN_ACTIONS
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Tuple
import uuid


def _visible_property_reviews():
    return (
        Review.review_type == ReviewType.PROPERTY,
        Review.is_published.is_(True),
        Review.admin_action.notin_(HIDDEN_ACTIONS),
    )


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)
    
    async def get_by_booking_and_reviewer(self, booking_id: uuid.UUID, reviewer_id: uuid.UUID) -> Optional[Review]:
        result = await self.db.execute(
            select(Review).where(Review.booking_id == booking_id, Review.reviewer_id == reviewer_id)
        )
        return result.scalar_one_or_none()
    
    async def list_for_property(
        self,
        property_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Review], int]:
        """Published, non-hidden reviews of a property, newest first."""
        query = (
            select(Review)
            .where(Review.property_id == property_id, *_visible_property_reviews())
            .order_by(Review.created_at.desc())
        )
        return await self.paginate(query, skip, limit)
    
    async def list_for_admin(
        self,
        admin_action: Optional[ReviewModeration] = None,
        rating: Optional[int] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Review], int]:
        query = select(Review)
        if admin_action:
            query = query.where(Review.admin_action == admin_action)
        if rating:
            query = query.where(Review.rating == rating)
        return await self.paginate(query.order_by(Review.created_at.desc()), skip, limit)
    
    async def property_rating(self, property_id: uuid.UUID) -> Tuple[Decimal, int]:
        """Average rating and count over visible reviews of a property."""
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id))
            .where(Review.property_id == property_id, *_visible_property_reviews())
        )
        return self._aggregate(result.one())
    
    async def host_rating(self, host_id: uuid.UUID) -> Tuple[Decimal, int]:
        """Average rating and count over visible reviews of all of a host's stays."""
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id))
            .where(Review.reviewee_id == host_id, *_visible_property_reviews())
        )
        return self._aggregate(result.one())
    
    @staticmethod
    def _aggregate(row) -> Tuple[Decimal, int]:
        average, count = row
        if not count:
            return Decimal("0.00"), 0
        return Decimal(str(average)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), count
