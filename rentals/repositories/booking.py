"""
Booking repository: availability queries, role-scoped listings and payment records.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from rentals.repositories.base import BaseRepository
from rentals.repositories.property import overlap_condition
from rentals.models.booking import (
    Booking, BookingStatus, PaymentStatus, PaymentHistory, Refund, BLOCKING_STATUSES
)
from rentals.models.property import Property
from rentals.models.user import User
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

REVENUE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)

# Statuses shown on the public booked-dates calendar
CALENDAR_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


@dataclass
class BookingListFilters:
    status: Optional[BookingStatus] = None
    property_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    guest_id: Optional[uuid.UUID] = None
    host_id: Optional[uuid.UUID] = None
    # Restricts results to bookings where this user is guest or host
    party_id: Optional[uuid.UUID] = None


class BookingRepository(BaseRepository[Booking]):
    """Repository for bookings and their payment trail."""
    
    def __init__(self, db: AsyncSession):
        super().__init__(Booking, db)
    
    async def find_conflicts(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[uuid.UUID] = None
    ) -> List[Booking]:
        """
        Pending or confirmed bookings on the property that overlap the stay.
        
        Args:
            property_id: Property to check
            check_in: Requested arrival date
            check_out: Requested departure date (exclusive)
            exclude_booking_id: Booking to ignore, if any
            
        Returns:
            Conflicting bookings ordered by check-in date
        """
        query = select(Booking).where(
            Booking.property_id == property_id,
            Booking.status.in_(BLOCKING_STATUSES),
            overlap_condition(check_in, check_out),
        )
        if exclude_booking_id:
            query = query.where(Booking.id != exclude_booking_id)
        
        result = await self.db.execute(query.order_by(Booking.check_in_date))
        conflicts = list(result.scalars().all())
        if conflicts:
            logger.debug(f"Found {len(conflicts)} conflicting bookings for property {property_id}")
        return conflicts
    
    async def calendar_bookings(self, property_id: uuid.UUID, start: date, end: date) -> List[Booking]:
        """Bookings overlapping the window that appear on the availability calendar."""
        result = await self.db.execute(
            select(Booking)
            .where(
                Booking.property_id == property_id,
                Booking.status.in_(CALENDAR_STATUSES),
                overlap_condition(start, end),
            )
            .order_by(Booking.check_in_date)
        )
        return list(result.scalars().all())
    
    async def list_bookings(
        self,
        filters: BookingListFilters,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Booking], int]:
        """
        List bookings newest first.
        
        Args:
            filters: BookingListFilters with optional party, status and date filters
            skip: Number of records to skip
            limit: Maximum number of records to return
            
        Returns:
            Tuple of (bookings list, total count)
        """
        query = select(Booking)
        
        if filters.party_id:
            query = query.where(or_(Booking.guest_id == filters.party_id, Booking.host_id == filters.party_id))
        if filters.guest_id:
            query = query.where(Booking.guest_id == filters.guest_id)
        if filters.host_id:
            query = query.where(Booking.host_id == filters.host_id)
        if filters.status:
            query = query.where(Booking.status == filters.status)
        if filters.property_id:
            query = query.where(Booking.property_id == filters.property_id)
        if filters.start_date:
            query = query.where(Booking.check_in_date >= filters.start_date)
        if filters.end_date:
            query = query.where(Booking.check_in_date <= filters.end_date)
        
        return await self.paginate(query.order_by(Booking.created_at.desc()), skip, limit)
    
    async def list_for_admin(
        self,
        status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Booking], int]:
        """All bookings, searchable by property title or guest email."""
        query = (
            select(Booking)
            .join(Property, Property.id == Booking.property_id)
            .join(User, User.id == Booking.guest_id)
        )
        if status:
            query = query.where(Booking.status == status)
        if payment_status:
            query = query.where(Booking.payment_status == payment_status)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Property.title.ilike(pattern), User.email.ilike(pattern)))
        
        return await self.paginate(query.order_by(Booking.created_at.desc()), skip, limit)
    
    async def add_payment_history(self, entry: PaymentHistory) -> None:
        """Stage a payment history row; it is written with the next commit."""
        self.db.add(entry)
    
    async def get_payment_history(self, booking_id: uuid.UUID) -> List[PaymentHistory]:
        result = await self.db.execute(
            select(PaymentHistory)
            .where(PaymentHistory.booking_id == booking_id)
            .order_by(PaymentHistory.created_at.desc())
        )
        return list(result.scalars().all())
    
    async def add_refund(self, refund: Refund) -> None:
        self.db.add(refund)
    
    async def get_refunds(self, booking_id: uuid.UUID) -> List[Refund]:
        result = await self.db.execute(
            select(Refund).where(Refund.booking_id == booking_id).order_by(Refund.created_at.desc())
        )
        return list(result.scalars().all())
    
    async def count_bookings(self, host_id: Optional[uuid.UUID] = None) -> int:
        query = select(func.count(Booking.id))
        if host_id:
            query = query.where(Booking.host_id == host_id)
        return (await self.db.execute(query)).scalar() or 0
    
    async def revenue(
        self,
        host_id: Optional[uuid.UUID] = None,
        since: Optional[datetime] = None
    ) -> Decimal:
        """Sum of total_amount over confirmed and completed bookings."""
        query = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
            Booking.status.in_(REVENUE_STATUSES)
        )
        if host_id:
            query = query.where(Booking.host_id == host_id)
        if since:
            query = query.where(Booking.created_at >= since)
        value = (await self.db.execute(query)).scalar()
        return Decimal(str(value or 0))
    
