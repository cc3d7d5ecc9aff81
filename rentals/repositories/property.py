"""
Property repository for listing search, host dashboards and moderation queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_, not_, exists, asc, desc, delete, insert
from rentals.repositories.base import BaseRepository
from rentals.models.property import (
    Property, PropertyType, PropertyStatus, PropertyStatusHistory, property_amenities
)
from rentals.models.booking import Booking, BLOCKING_STATUSES
from rentals.models.blocked_date import BlockedDate
from rentals.models.user import User
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "price_per_night": Property.price_per_night,
    "average_rating": Property.average_rating,
    "created_at": Property.created_at,
    "total_reviews": Property.total_reviews,
}


@dataclass
class PropertySearchFilters:
    """Criteria accepted by the public property search."""
    location: Optional[str] = None
    guests: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[Decimal] = None
    amenity_ids: List[uuid.UUID] = field(default_factory=list)
    check_in: Optional[date] = None
    check_out: Optional[date] = None


def overlap_condition(check_in: date, check_out: date):
    """
    SQL condition matching bookings whose stay intersects [check_in, check_out).
    Back-to-back stays (one checks out the day the other checks in) do not overlap.
    """
    return not_(or_(Booking.check_out_date <= check_in, Booking.check_in_date >= check_out))


class PropertyRepository(BaseRepository[Property]):
    """Repository for rental listings."""
    
    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)
    
    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search active properties.
        
        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            sort_by: One of SORTABLE_FIELDS
            sort_order: 'asc' or 'desc'
            
        Returns:
            Tuple of (properties list, total count)
        """
        try:
            query = select(Property).where(Property.status == PropertyStatus.ACTIVE)
            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
            
            order_field = SORTABLE_FIELDS.get(sort_by, Property.created_at)
            direction = asc if sort_order.lower() == "asc" else desc
            query = query.order_by(direction(order_field), Property.id)
            
            properties, total = await self.paginate(query, skip, limit)
            logger.debug(f"Property search returned {len(properties)} of {total} total results")
            return properties, total
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise
    
    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        conditions = []
        
        if filters.location:
            pattern = f"%{filters.location}%"
            conditions.append(
                or_(
                    Property.city.ilike(pattern),
                    Property.address.ilike(pattern),
                    Property.country.ilike(pattern),
                )
            )
        
        if filters.guests is not None:
            conditions.append(Property.max_guests >= filters.guests)
        if filters.min_price is not None:
            conditions.append(Property.price_per_night >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price_per_night <= filters.max_price)
        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.bathrooms)
        
        # Property must carry every requested amenity
        if filters.amenity_ids:
            wanted = set(filters.amenity_ids)
            with_all = (
                select(property_amenities.c.property_id)
                .where(property_amenities.c.amenity_id.in_(wanted))
                .group_by(property_amenities.c.property_id)
                .having(func.count(func.distinct(property_amenities.c.amenity_id)) == len(wanted))
            )
            conditions.append(Property.id.in_(with_all))
        
        if filters.check_in and filters.check_out:
            booked = exists().where(
                Booking.property_id == Property.id,
                Booking.status.in_(BLOCKING_STATUSES),
                overlap_condition(filters.check_in, filters.check_out),
            )
            conditions.append(not_(booked))
            blocked = exists().where(
                BlockedDate.property_id == Property.id,
                BlockedDate.blocked_date >= filters.check_in,
                BlockedDate.blocked_date < filters.check_out,
            )
            conditions.append(not_(blocked))
        
        return conditions
    
    async def get_host_properties(
        self,
        host_id: uuid.UUID,
        status: Optional[PropertyStatus] = None,
        skip: int = 0,
        limit: int = 12
    ) -> Tuple[List[Property], int]:
        """Properties owned by a host, newest first, optionally filtered by status."""
        query = select(Property).where(Property.host_id == host_id)
        if status:
            query = query.where(Property.status == status)
        return await self.paginate(query.order_by(Property.created_at.desc()), skip, limit)
    
    async def list_for_admin(
        self,
        status: Optional[PropertyStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """All properties of any status, searchable by title, city or host email."""
        query = select(Property).join(User, User.id == Property.host_id)
        if status:
            query = query.where(Property.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Property.title.ilike(pattern), Property.city.ilike(pattern), User.email.ilike(pattern))
            )
        return await self.paginate(query.order_by(Property.created_at.desc()), skip, limit)
    
    async def replace_amenities(self, property_obj: Property, amenity_ids: List[uuid.UUID]) -> Property:
        """Replace the amenity set of a property."""
        try:
            await self.db.execute(
                delete(property_amenities).where(property_amenities.c.property_id == property_obj.id)
            )
            if amenity_ids:
                await self.db.execute(
                    insert(property_amenities),
                    [{"property_id": property_obj.id, "amenity_id": amenity_id} for amenity_id in set(amenity_ids)],
                )
            await self.db.commit()
            await self.db.refresh(property_obj, ["amenities"])
            return property_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to replace amenities for property {property_obj.id}: {e}")
            raise
    
    async def has_open_bookings(self, property_id: uuid.UUID) -> bool:
        """True while pending or confirmed bookings exist for the property."""
        result = await self.db.execute(
            select(func.count(Booking.id)).where(
                Booking.property_id == property_id,
                Booking.status.in_(BLOCKING_STATUSES),
            )
        )
        return (result.scalar() or 0) > 0
    
    async def add_status_history(
        self,
        property_id: uuid.UUID,
        old_status: PropertyStatus,
        new_status: PropertyStatus,
        changed_by_id: Optional[uuid.UUID],
        notes: Optional[str] = None
    ) -> PropertyStatusHistory:
        entry = PropertyStatusHistory(
            property_id=property_id,
            old_status=old_status,
            new_status=new_status,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry
    
    async def get_status_history(self, property_id: uuid.UUID) -> List[PropertyStatusHistory]:
        result = await self.db.execute(
            select(PropertyStatusHistory)
            .where(PropertyStatusHistory.property_id == property_id)
            .order_by(PropertyStatusHistory.created_at.desc())
        )
        return list(result.scalars().all())
    
    async def count_listed(self, host_id: Optional[uuid.UUID] = None) -> int:
        """Count properties excluding inactive ones."""
        query = select(func.count(Property.id)).where(Property.status != PropertyStatus.INACTIVE)
        if host_id:
            query = query.where(Property.host_id == host_id)
        return (await self.db.execute(query)).scalar() or 0
    
    async def all_ids(self) -> List[uuid.UUID]:
        result = await self.db.execute(select(Property.id))
        return list(result.scalars().all())
    
    async def host_ids(self) -> List[uuid.UUID]:
        """Distinct owners of any property."""
        result = await self.db.execute(select(Property.host_id).distinct())
        return list(result.scalars().all())
