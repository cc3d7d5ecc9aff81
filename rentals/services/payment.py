"""
Payment service: reported payment status changes, refunds and per-booking financials.
No gateway is involved; statuses are recorded as reported and audited in payment history.
"""

from typing import Dict, Any, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database import utcnow
from rentals.models.booking import (
    Booking, BookingStatus, PaymentStatus, PaymentHistory, Refund, PAYMENT_TRANSITIONS
)
from rentals.models.notification import NotificationType
from rentals.models.user import User
from rentals.repositories.booking import BookingRepository
from rentals.schemas.payment import PaymentUpdate, RefundRequest
from rentals.services.notification import NotificationService
from rentals.utils.pricing import to_money
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    BookingNotFoundError,
    BookingStatusTransitionError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

REFUNDABLE_PAYMENT_STATUSES = (PaymentStatus.PAID, PaymentStatus.PARTIAL)


class PaymentService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.booking_repo = BookingRepository(db_session)
        self.notifications = NotificationService(db_session)
    
    async def _get_visible_booking(self, booking_id: uuid.UUID, current_user: User) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        if not current_user.is_admin and not booking.is_party(current_user.id):
            raise ForbiddenError("You do not have permission to access this booking's payments")
        return booking
    
    async def update_payment(
        self,
        booking_id: uuid.UUID,
        payment_data: PaymentUpdate,
        current_user: User
    ) -> Booking:
        """
        Record a payment change reported by a party or an admin.
        
        A pending booking whose payment becomes paid is confirmed automatically.
        
        Raises:
            ForbiddenError: If a non-admin changes the status of a refunded payment
            BookingStatusTransitionError: If the payment transition is not allowed
        """
        try:
            booking = await self._get_visible_booking(booking_id, current_user)
            previous = booking.payment_status
            new_status = payment_data.payment_status or previous
            
            if previous == PaymentStatus.REFUNDED and new_status != previous and not current_user.is_admin:
                raise ForbiddenError("Only administrators can change the status of refunded payments")
            
            if new_status != previous and new_status not in PAYMENT_TRANSITIONS[previous]:
                logger.warning(f"Rejected payment transition {previous.value} -> {new_status.value} on booking {booking_id}")
                raise BookingStatusTransitionError(previous.value, new_status.value, subject="payment status")
            
            changes: Dict[str, Any] = {"payment_status": new_status}
            if payment_data.payment_method is not None:
                changes["payment_method"] = payment_data.payment_method
            if payment_data.payment_reference is not None:
                changes["payment_reference"] = payment_data.payment_reference
            
            auto_confirmed = new_status == PaymentStatus.PAID and booking.status == BookingStatus.PENDING
            if auto_confirmed:
                changes["status"] = BookingStatus.CONFIRMED
            
            await self.booking_repo.add_payment_history(PaymentHistory(
                booking_id=booking.id,
                previous_status=previous,
                new_status=new_status,
                payment_method=changes.get("payment_method", booking.payment_method),
                payment_reference=changes.get("payment_reference", booking.payment_reference),
                updated_by_id=current_user.id,
                notes=payment_data.payment_notes,
            ))
            booking = await self.booking_repo.save(booking, changes)
            
            if auto_confirmed:
                await self.notifications.notify(
                    booking.guest_id,
                    "Booking confirmed",
                    f"Payment received; your booking for {booking.property_rel.title} is confirmed",
                    type=NotificationType.PAYMENT,
                    related_id=booking.id,
                    related_type="booking",
                )
            
            logger.info(
                f"Payment for booking {booking_id} updated {previous.value} -> {new_status.value}"
                + (" (booking auto-confirmed)" if auto_confirmed else ""),
                extra={"booking_id": str(booking_id), "user_id": str(current_user.id)}
            )
            return booking
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update payment for booking {booking_id}: {e}")
            raise BadRequestError(f"Failed to update payment: {str(e)}")
    
    async def get_payment_history(self, booking_id: uuid.UUID, current_user: User) -> List[PaymentHistory]:
        await self._get_visible_booking(booking_id, current_user)
        return await self.booking_repo.get_payment_history(booking_id)
    
    async def process_refund(
        self,
        booking_id: uuid.UUID,
        refund_data: RefundRequest,
        admin: User
    ) -> Tuple[Booking, Refund]:
        """
        Refund a cancelled booking.
        
        Refunds accumulate on the booking. Once the refunded total reaches
        total_amount, both payment and booking become refunded; before that the
        payment is partial.
        
        Raises:
            ForbiddenError: If the caller is not an admin
            BadRequestError: If a refund precondition fails
        """
        if not admin.is_admin:
            raise ForbiddenError("Only administrators can process refunds")
        
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        
        amount = to_money(refund_data.refund_amount)
        already_refunded = to_money(booking.refund_amount or 0)
        total = to_money(booking.total_amount)
        
        if amount <= 0:
            raise BadRequestError("Refund amount must be greater than zero")
        if amount > total - already_refunded:
            raise BadRequestError(
                f"Refund amount exceeds the refundable balance of {total - already_refunded}"
            )
        if booking.status != BookingStatus.CANCELLED:
            raise BadRequestError("Only cancelled bookings can be refunded")
        if booking.payment_status not in REFUNDABLE_PAYMENT_STATUSES:
            raise BadRequestError("Only paid or partially paid bookings can be refunded")
        
        try:
            refunded_total = already_refunded + amount
            full_refund = refunded_total >= total
            previous_payment = booking.payment_status
            new_payment = PaymentStatus.REFUNDED if full_refund else PaymentStatus.PARTIAL
            
            refund = Refund(
                booking_id=booking.id,
                refund_amount=amount,
                refund_reason=refund_data.refund_reason,
                refund_method=refund_data.refund_method,
                processed_by_id=admin.id,
                processed_at=utcnow(),
            )
            await self.booking_repo.add_refund(refund)
            await self.booking_repo.add_payment_history(PaymentHistory(
                booking_id=booking.id,
                previous_status=previous_payment,
                new_status=new_payment,
                payment_method=refund_data.refund_method,
                payment_reference=booking.payment_reference,
                updated_by_id=admin.id,
                notes=f"Refund of {amount}: {refund_data.refund_reason}",
            ))
            
            changes: Dict[str, Any] = {"payment_status": new_payment, "refund_amount": refunded_total}
            if full_refund:
                changes["status"] = BookingStatus.REFUNDED
            booking = await self.booking_repo.save(booking, changes)
            await self.db.refresh(refund)
            
            await self.notifications.notify(
                booking.guest_id,
                "Refund processed",
                f"A refund of {amount} was issued for your booking at {booking.property_rel.title}",
                type=NotificationType.PAYMENT,
                related_id=booking.id,
                related_type="booking",
            )
            logger.info(
                f"Refund {refund.id} of {amount} processed for booking {booking_id} ({'full' if full_refund else 'partial'})",
                extra={"booking_id": str(booking_id), "admin_id": str(admin.id)}
            )
            return booking, refund
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to process refund for booking {booking_id}: {e}")
            raise BadRequestError(f"Failed to process refund: {str(e)}")
    
    async def get_financials(self, booking_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        booking = await self._get_visible_booking(booking_id, current_user)
        refunds = await self.booking_repo.get_refunds(booking_id)
        total_refunded = to_money(booking.refund_amount or 0)
        return {
            "booking_id": str(booking.id),
            "base_price": float(booking.base_price),
            "cleaning_fee": float(booking.cleaning_fee),
            "service_fee": float(booking.service_fee),
            "security_deposit": float(booking.security_deposit),
            "total_amount": float(booking.total_amount),
            "payment_status": booking.payment_status,
            "payment_method": booking.payment_method,
            "total_refunded": float(total_refunded),
            "net_amount": float(to_money(booking.total_amount) - total_refunded),
            "refunds": [refund.to_dict() for refund in refunds],
        }
