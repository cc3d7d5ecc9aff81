"""
Booking service: availability checks, pricing and the booking lifecycle.

Availability is decided by a single overlap query against pending and confirmed
bookings, plus the host's blocked calendar days. Stays are half-open ranges
[check_in, check_out), so back-to-back bookings never conflict.
"""

from datetime import date, datetime, timedelta
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.config import settings
from rentals.database import utcnow
from rentals.models.booking import (
    Booking, BookingStatus, PaymentStatus, CancelledBy, BOOKING_TRANSITIONS
)
from rentals.models.message import Conversation
from rentals.models.notification import NotificationType
from rentals.models.property import Property
from rentals.models.user import User, UserRole
from rentals.repositories.booking import BookingRepository, BookingListFilters
from rentals.repositories.property import PropertyRepository
from rentals.repositories.blocked_date import BlockedDateRepository
from rentals.repositories.message import ConversationRepository
from rentals.repositories.review import ReviewRepository
from rentals.schemas.booking import BookingCreate, PricingRequest, BookingStatusUpdate
from rentals.services.notification import NotificationService
from rentals.utils.pricing import PriceQuote, calculate_price, count_nights
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    PropertyNotFoundError,
    BookingNotFoundError,
    BookingStatusTransitionError,
    DateConflictError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def parse_booking_date(value: Optional[str], field: str = "date") -> date:
    """
    Parse a YYYY-MM-DD string.
    
    Raises:
        BadRequestError: If the value is missing or malformed
    """
    if not value:
        raise BadRequestError(f"{field} is required")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise BadRequestError("Invalid date format. Use YYYY-MM-DD")


class BookingService:
    """
    Booking service for reservations.
    Guests request stays; hosts and admins drive them through the status table.
    """
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.booking_repo = BookingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.blocked_date_repo = BlockedDateRepository(db_session)
        self.conversation_repo = ConversationRepository(db_session)
        self.review_repo = ReviewRepository(db_session)
        self.notifications = NotificationService(db_session)
    
    # Validation chain
    
    async def _load_property(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj
    
    async def validate_stay(
        self,
        property_obj: Property,
        check_in: date,
        check_out: date,
        guests_count: int,
        exclude_booking_id: Optional[uuid.UUID] = None
    ) -> PriceQuote:
        """
        Run the booking rules against a property and price the stay.
        
        Args:
            property_obj: Property being requested
            check_in: Arrival date
            check_out: Departure date (exclusive)
            guests_count: Number of guests
            exclude_booking_id: Booking to ignore in the conflict check
            
        Returns:
            PriceQuote for the stay
            
        Raises:
            BadRequestError: If a date, capacity or stay-length rule fails
            DateConflictError: If the stay overlaps bookings or blocked dates
        """
        today = utcnow().date()
        
        if check_out <= check_in:
            raise BadRequestError("Check-out date must be after check-in date")
        if check_in < today:
            raise BadRequestError("Check-in date cannot be in the past")
        if guests_count < 1:
            raise BadRequestError("At least one guest is required")
        
        nights = count_nights(check_in, check_out)
        self.check_listing_rules(property_obj, nights, guests_count)
        
        if property_obj.advance_booking_days and check_in > today + timedelta(days=property_obj.advance_booking_days):
            raise BadRequestError(
                f"Cannot book more than {property_obj.advance_booking_days} days in advance"
            )
        
        await self.ensure_no_conflicts(property_obj.id, check_in, check_out, exclude_booking_id)
        
        return calculate_price(
            property_obj.price_per_night,
            nights,
            guests_count,
            cleaning_fee=property_obj.cleaning_fee,
            security_deposit=property_obj.security_deposit,
        )
    
    @staticmethod
    def check_listing_rules(property_obj: Property, nights: int, guests_count: int) -> None:
        """Status, capacity and stay-length rules shared by bookings and price quotes."""
        if not property_obj.is_bookable:
            raise BadRequestError("Property is not available for booking")
        if guests_count > property_obj.max_guests:
            raise BadRequestError(f"Property can accommodate maximum {property_obj.max_guests} guests")
        if nights < property_obj.min_nights:
            raise BadRequestError(f"Minimum stay is {property_obj.min_nights} nights")
        if property_obj.max_nights and nights > property_obj.max_nights:
            raise BadRequestError(f"Maximum stay is {property_obj.max_nights} nights")
    
    async def ensure_no_conflicts(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[uuid.UUID] = None
    ) -> None:
        """
        Raises:
            DateConflictError: Listing every overlapping booking and blocked day
        """
        bookings = await self.booking_repo.find_conflicts(property_id, check_in, check_out, exclude_booking_id)
        blocked = await self.blocked_date_repo.in_range(property_id, check_in, check_out)
        
        if not bookings and not blocked:
            return
        
        conflicts: List[Dict[str, Any]] = [
            {
                "type": "booking",
                "booking_id": str(booking.id),
                "check_in_date": booking.check_in_date.isoformat(),
                "check_out_date": booking.check_out_date.isoformat(),
                "status": booking.status.value,
            }
            for booking in bookings
        ]
        conflicts.extend(
            {
                "type": "blocked",
                "date": day.blocked_date.isoformat(),
                "reason": day.reason.value,
            }
            for day in blocked
        )
        logger.warning(
            f"Date conflict on property {property_id} for {check_in} -> {check_out}",
            extra={"property_id": str(property_id), "conflicts": len(conflicts)}
        )
        raise DateConflictError(conflicts)
    
    # Public queries
    
    async def check_availability(
        self,
        property_id: uuid.UUID,
        check_in_date: Optional[str],
        check_out_date: Optional[str],
        guests_count: int = 1
    ) -> Dict[str, Any]:
        check_in = parse_booking_date(check_in_date, "check_in_date")
        check_out = parse_booking_date(check_out_date, "check_out_date")
        property_obj = await self._load_property(property_id)
        quote = await self.validate_stay(property_obj, check_in, check_out, guests_count)
        
        return {
            "available": True,
            "property": {
                "id": str(property_obj.id),
                "title": property_obj.title,
                "max_guests": property_obj.max_guests,
                "is_instant_book": property_obj.is_instant_book,
            },
            "booking_details": {
                "check_in_date": check_in,
                "check_out_date": check_out,
                "guests_count": guests_count,
                "nights": quote.nights,
                "pricing": quote.to_dict(),
            },
        }
    
    async def get_booked_dates(
        self,
        property_id: uuid.UUID,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Booked ranges and blocked days within a window, today + 180 days by default."""
        start = parse_booking_date(start_date, "start_date") if start_date else utcnow().date()
        end = (
            parse_booking_date(end_date, "end_date") if end_date
            else start + timedelta(days=settings.booked_dates_window_days)
        )
        if end <= start:
            raise BadRequestError("end_date must be after start_date")
        
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))
        
        bookings = await self.booking_repo.calendar_bookings(property_id, start, end)
        blocked = await self.blocked_date_repo.in_range(property_id, start, end)
        
        return {
            "property_id": str(property_id),
            "start_date": start,
            "end_date": end,
            "booked_ranges": [
                {
                    "booking_id": str(booking.id),
                    "check_in_date": booking.check_in_date,
                    "check_out_date": booking.check_out_date,
                    "status": booking.status,
                }
                for booking in bookings
            ],
            "blocked_dates": [{"date": day.blocked_date, "reason": day.reason} for day in blocked],
        }
    
    async def quote_price(self, request: PricingRequest) -> Dict[str, Any]:
        """
        Price a stay without checking availability. Guests default to the property's capacity.
        
        Raises:
            BadRequestError: If the listing is not bookable or the stay breaks its limits
        """
        check_in = parse_booking_date(request.check_in_date, "check_in_date")
        check_out = parse_booking_date(request.check_out_date, "check_out_date")
        nights = count_nights(check_in, check_out)
        if nights <= 0:
            raise BadRequestError("check_out_date must be after check_in_date")
        
        property_obj = await self._load_property(request.property_id)
        guests = request.guests_count or property_obj.max_guests
        self.check_listing_rules(property_obj, nights, guests)
        quote = calculate_price(
            property_obj.price_per_night,
            nights,
            guests,
            cleaning_fee=property_obj.cleaning_fee,
            security_deposit=property_obj.security_deposit,
        )
        return {
            "property_id": str(property_obj.id),
            "check_in_date": check_in,
            "check_out_date": check_out,
            "pricing": quote.to_dict(),
        }
    
    # Lifecycle
    
    async def create_booking(self, booking_data: BookingCreate, guest: User) -> Tuple[Booking, Optional[Conversation]]:
        """
        Create a booking after the full validation chain.
        
        Instant-book properties confirm immediately; others wait for the host.
        A guest-host conversation scoped to the property is created or reused.
        
        Returns:
            Tuple of (booking, conversation); conversation is None if the follow-up failed
            
        Raises:
            PropertyNotFoundError: If the property doesn't exist
            BadRequestError: If the guest owns the property or a rule fails
            DateConflictError: If the dates are taken
        """
        try:
            check_in = parse_booking_date(booking_data.check_in_date, "check_in_date")
            check_out = parse_booking_date(booking_data.check_out_date, "check_out_date")
            property_obj = await self._load_property(booking_data.property_id)
            
            if property_obj.host_id == guest.id:
                raise BadRequestError("You cannot book your own property")
            
            quote = await self.validate_stay(property_obj, check_in, check_out, booking_data.guests_count)
            initial_status = BookingStatus.CONFIRMED if property_obj.is_instant_book else BookingStatus.PENDING
            
            booking = await self.booking_repo.create({
                "property_id": property_obj.id,
                "guest_id": guest.id,
                "host_id": property_obj.host_id,
                "check_in_date": check_in,
                "check_out_date": check_out,
                "guests_count": booking_data.guests_count,
                "base_price": quote.base_price,
                "cleaning_fee": quote.cleaning_fee,
                "security_deposit": quote.security_deposit,
                "service_fee": quote.service_fee,
                "total_amount": quote.total_amount,
                "status": initial_status,
                "payment_status": PaymentStatus.PENDING,
                "special_requests": booking_data.special_requests,
                "guest_notes": booking_data.guest_notes,
            })
            
            conversation = await self._after_booking_created(booking, property_obj, guest)
            
            logger.info(
                f"Booking created: {booking.id} for property {property_obj.id} ({initial_status.value})",
                extra={"booking_id": str(booking.id), "guest_id": str(guest.id), "total": str(quote.total_amount)}
            )
            return booking, conversation
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create booking: {e}")
            raise BadRequestError(f"Failed to create booking: {str(e)}")
    
    async def _after_booking_created(
        self,
        booking: Booking,
        property_obj: Property,
        guest: User
    ) -> Optional[Conversation]:
        """
        Counter, conversation and host notification for a committed booking.
        
        The booking stands even when these fail; the failure is logged and
        the booking is returned without a conversation.
        """
        try:
            await self.property_repo.save(property_obj, {"total_bookings": (property_obj.total_bookings or 0) + 1})
            conversation = await self._conversation_for_booking(booking)
            await self.notifications.notify(
                property_obj.host_id,
                "New booking request" if booking.status == BookingStatus.PENDING else "New confirmed booking",
                f"{guest.full_name} booked {property_obj.title} from {booking.check_in_date} to {booking.check_out_date}",
                type=NotificationType.BOOKING,
                related_id=booking.id,
                related_type="booking",
            )
            return conversation
        except Exception as e:
            logger.error(f"Follow-up for booking {booking.id} failed, booking kept: {e}")
            await self.db.refresh(booking)
            return None
    
    async def _conversation_for_booking(self, booking: Booking) -> Conversation:
        participants = {booking.guest_id, booking.host_id}
        conversation = await self.conversation_repo.find_by_participants(participants, booking.property_id)
        if conversation is None:
            return await self.conversation_repo.create_conversation(
                participants, property_id=booking.property_id, booking_id=booking.id
            )
        if conversation.booking_id is None:
            conversation = await self.conversation_repo.save(conversation, {"booking_id": booking.id})
        return conversation
    
    async def list_bookings(
        self,
        current_user: User,
        filters: BookingListFilters,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Booking], int]:
        """
        Role-scoped booking list.
        Admins see everything, hosts see bookings they host or made, guests see their own.
        """
        if current_user.is_admin:
            scoped = filters
        elif current_user.role == UserRole.HOST:
            scoped = BookingListFilters(
                status=filters.status,
                property_id=filters.property_id,
                start_date=filters.start_date,
                end_date=filters.end_date,
                party_id=current_user.id,
            )
        else:
            scoped = BookingListFilters(
                status=filters.status,
                property_id=filters.property_id,
                start_date=filters.start_date,
                end_date=filters.end_date,
                guest_id=current_user.id,
            )
        
        page_size = min(page_size, settings.max_page_size)
        return await self.booking_repo.list_bookings(scoped, skip=(page - 1) * page_size, limit=page_size)
    
    async def get_booking_record(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        return booking
    
    async def get_booking(self, booking_id: uuid.UUID, current_user: User) -> Booking:
        """
        Raises:
            BookingNotFoundError: If the booking doesn't exist
            ForbiddenError: If the user is neither a party nor an admin
        """
        booking = await self.get_booking_record(booking_id)
        if not current_user.is_admin and not booking.is_party(current_user.id):
            raise ForbiddenError("You do not have permission to view this booking")
        return booking
    
    async def get_permissions(self, booking: Booking, current_user: User) -> Dict[str, bool]:
        is_party = booking.is_party(current_user.id)
        can_review = False
        if booking.status == BookingStatus.COMPLETED and booking.guest_id == current_user.id:
            can_review = await self.review_repo.get_by_booking_and_reviewer(booking.id, current_user.id) is None
        return {
            "can_cancel": booking.is_cancellable and (is_party or current_user.is_admin),
            "can_review": can_review,
            "can_update_status": booking.host_id == current_user.id or current_user.is_admin,
        }
    
    async def update_status(
        self,
        booking_id: uuid.UUID,
        status_data: BookingStatusUpdate,
        current_user: User
    ) -> Booking:
        """
        Move a booking along the status table.
        
        Raises:
            ForbiddenError: If the user is not the host or an admin, or a non-admin requests refunded
            BookingStatusTransitionError: If the transition is not allowed
        """
        booking = await self.get_booking_record(booking_id)
        if booking.host_id != current_user.id and not current_user.is_admin:
            raise ForbiddenError("Only the host or admin can update booking status")
        
        current_status = booking.status
        new_status = status_data.status
        if new_status not in BOOKING_TRANSITIONS[current_status]:
            logger.warning(f"Rejected booking {booking_id} transition {current_status.value} -> {new_status.value}")
            raise BookingStatusTransitionError(current_status.value, new_status.value)
        if new_status == BookingStatus.REFUNDED and not current_user.is_admin:
            raise ForbiddenError("Only administrators can process refunds")
        
        changes: Dict[str, Any] = {"status": new_status}
        if status_data.host_notes is not None:
            changes["host_notes"] = status_data.host_notes
        if new_status == BookingStatus.CANCELLED:
            changes.update(self._cancellation_changes(booking, current_user))
        
        booking = await self.booking_repo.save(booking, changes)
        
        await self.notifications.notify(
            booking.guest_id,
            f"Booking {new_status.value}",
            f"Your booking for {booking.property_rel.title} is now {new_status.value}",
            type=NotificationType.BOOKING,
            related_id=booking.id,
            related_type="booking",
        )
        logger.info(f"Booking {booking_id} status updated {current_status.value} -> {new_status.value} by {current_user.id}")
        return booking
    
    async def cancel_booking(
        self,
        booking_id: uuid.UUID,
        current_user: User,
        cancellation_reason: Optional[str] = None,
        admin_notes: Optional[str] = None
    ) -> Booking:
        """
        Cancel a pending or confirmed booking on behalf of a party or an admin.
        
        Raises:
            ForbiddenError: If the user is neither a party nor an admin
            BadRequestError: If the booking is not pending or confirmed
        """
        booking = await self.get_booking_record(booking_id)
        if not current_user.is_admin and not booking.is_party(current_user.id):
            raise ForbiddenError("You do not have permission to cancel this booking")
        if not booking.is_cancellable:
            raise BadRequestError("Only pending or confirmed bookings can be cancelled")
        
        changes = self._cancellation_changes(booking, current_user)
        changes["status"] = BookingStatus.CANCELLED
        changes["cancellation_reason"] = cancellation_reason
        if admin_notes is not None:
            changes["admin_notes"] = admin_notes
        booking = await self.booking_repo.save(booking, changes)
        
        cancelled_by = booking.cancelled_by
        if cancelled_by == CancelledBy.GUEST:
            recipients = [booking.host_id]
        elif cancelled_by == CancelledBy.HOST:
            recipients = [booking.guest_id]
        else:
            recipients = [booking.guest_id, booking.host_id]
        for recipient in recipients:
            await self.notifications.notify(
                recipient,
                "Booking cancelled",
                f"The booking for {booking.property_rel.title} from {booking.check_in_date} was cancelled",
                type=NotificationType.BOOKING,
                related_id=booking.id,
                related_type="booking",
            )
        
        logger.info(
            f"Booking {booking_id} cancelled by {cancelled_by.value}",
            extra={"booking_id": str(booking_id), "user_id": str(current_user.id)}
        )
        return booking
    
    @staticmethod
    def _cancellation_changes(booking: Booking, current_user: User) -> Dict[str, Any]:
        if current_user.is_admin:
            cancelled_by = CancelledBy.ADMIN
        elif booking.host_id == current_user.id:
            cancelled_by = CancelledBy.HOST
        else:
            cancelled_by = CancelledBy.GUEST
        changes: Dict[str, Any] = {"cancelled_at": utcnow(), "cancelled_by": cancelled_by}
        if cancelled_by == CancelledBy.ADMIN:
            changes["cancelled_by_admin_id"] = current_user.id
        return changes
