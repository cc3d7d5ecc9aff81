"""
Admin service: listing moderation, booking oversight, review moderation and the audit log.
Every mutating admin action writes an AdminActionLog row.
"""

from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database import utcnow
from rentals.models.admin_log import AdminActionLog
from rentals.models.booking import Booking, BookingStatus, PaymentStatus, Refund
from rentals.models.notification import NotificationType
from rentals.models.property import Property, PropertyStatus, PropertyStatusHistory
from rentals.models.review import Review, ReviewModeration
from rentals.models.user import User
from rentals.repositories.admin_log import AdminLogRepository
from rentals.repositories.booking import BookingRepository
from rentals.repositories.property import PropertyRepository
from rentals.schemas.admin import PropertyApproval, PropertyRejection, AdminBookingCancel
from rentals.schemas.payment import RefundRequest
from rentals.schemas.review import ReviewModerationRequest
from rentals.services.booking import BookingService
from rentals.services.notification import NotificationService
from rentals.services.payment import PaymentService
from rentals.services.property import PropertyService
from rentals.services.review import ReviewService
from rentals.utils.exceptions import APIException, BadRequestError, PropertyNotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.log_repo = AdminLogRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.property_service = PropertyService(db_session)
        self.booking_service = BookingService(db_session)
        self.payment_service = PaymentService(db_session)
        self.review_service = ReviewService(db_session)
        self.notifications = NotificationService(db_session)
    
    async def log_action(
        self,
        admin: User,
        action: str,
        target_type: str,
        target_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None
    ) -> AdminActionLog:
        entry = await self.log_repo.create({
            "admin_id": admin.id,
            "action": action,
            "target_type": target_type,
            "target_id": target_id,
            "description": description,
        })
        logger.info(
            f"Admin action {action} on {target_type} {target_id} by {admin.email}",
            extra={"admin_id": str(admin.id), "action": action}
        )
        return entry
    
    async def list_logs(
        self,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[AdminActionLog], int]:
        return await self.log_repo.list_logs(action, target_type, skip=(page - 1) * page_size, limit=page_size)
    
    # Properties
    
    async def list_properties(
        self,
        status: Optional[PropertyStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Property], int]:
        return await self.property_repo.list_for_admin(
            status=status, search=search, skip=(page - 1) * page_size, limit=page_size
        )
    
    async def property_history(self, property_id: uuid.UUID) -> List[PropertyStatusHistory]:
        return await self.property_service.get_status_history(property_id)
    
    async def _get_property(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj
    
    async def approve_property(self, property_id: uuid.UUID, approval: PropertyApproval, admin: User) -> Property:
        """Publish a listing and tell its host."""
        try:
            property_obj = await self._get_property(property_id)
            extra = {
                "approved_by_id": admin.id,
                "approved_at": utcnow(),
                "rejection_reason": None,
            }
            if approval.admin_notes is not None:
                extra["admin_notes"] = approval.admin_notes
            property_obj = await self.property_service.change_status(
                property_obj, PropertyStatus.ACTIVE, admin, notes=approval.admin_notes or "Approved", extra_changes=extra
            )
            
            await self.notifications.notify(
                property_obj.host_id,
                "Property approved",
                f"Your property '{property_obj.title}' is now live",
                type=NotificationType.SYSTEM,
                related_id=property_obj.id,
                related_type="property",
            )
            await self.log_action(admin, "approve_property", "property", property_obj.id, approval.admin_notes)
            return property_obj
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to approve property {property_id}: {e}")
            raise BadRequestError(f"Failed to approve property: {str(e)}")
    
    async def reject_property(self, property_id: uuid.UUID, rejection: PropertyRejection, admin: User) -> Property:
        """Take a listing offline with a reason the host can read."""
        try:
            property_obj = await self._get_property(property_id)
            extra = {"rejection_reason": rejection.reason}
            if rejection.admin_notes is not None:
                extra["admin_notes"] = rejection.admin_notes
            property_obj = await self.property_service.change_status(
                property_obj, PropertyStatus.INACTIVE, admin, notes=rejection.reason, extra_changes=extra
            )
            
            await self.notifications.notify(
                property_obj.host_id,
                "Property rejected",
                f"Your property '{property_obj.title}' was rejected: {rejection.reason}",
                type=NotificationType.SYSTEM,
                related_id=property_obj.id,
                related_type="property",
            )
            await self.log_action(admin, "reject_property", "property", property_obj.id, rejection.reason)
            return property_obj
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to reject property {property_id}: {e}")
            raise BadRequestError(f"Failed to reject property: {str(e)}")
    
    # Bookings
    
    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Booking], int]:
        return await self.booking_repo.list_for_admin(
            status=status, payment_status=payment_status, search=search,
            skip=(page - 1) * page_size, limit=page_size
        )
    
    async def cancel_booking(self, booking_id: uuid.UUID, cancel: AdminBookingCancel, admin: User) -> Booking:
        booking = await self.booking_service.cancel_booking(
            booking_id, admin, cancellation_reason=cancel.cancellation_reason, admin_notes=cancel.admin_notes
        )
        await self.log_action(admin, "cancel_booking", "booking", booking.id, cancel.cancellation_reason)
        return booking
    
    async def refund_booking(self, booking_id: uuid.UUID, refund_data: RefundRequest, admin: User) -> Tuple[Booking, Refund]:
        booking, refund = await self.payment_service.process_refund(booking_id, refund_data, admin)
        await self.log_action(
            admin, "refund_booking", "booking", booking.id,
            f"Refunded {refund.refund_amount}: {refund_data.refund_reason}"
        )
        return booking, refund
    
    # Reviews
    
    async def list_reviews(
        self,
        admin_action: Optional[ReviewModeration] = None,
        rating: Optional[int] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Review], int]:
        return await self.review_service.list_for_admin(admin_action, rating, page, page_size)
    
    async def moderate_review(self, review_id: uuid.UUID, moderation: ReviewModerationRequest, admin: User) -> Review:
        review = await self.review_service.moderate_review(review_id, moderation, admin)
        await self.log_action(
            admin, "moderate_review", "review", review.id,
            f"{moderation.admin_action.value}" + (f": {moderation.notes}" if moderation.notes else "")
        )
        return review
    
    async def delete_review(self, review_id: uuid.UUID, admin: User) -> None:
        review = await self.review_service.delete_review(review_id)
        await self.log_action(admin, "delete_review", "review", review_id, f"Deleted review of property {review.property_id}")
