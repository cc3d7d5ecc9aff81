"""
Review service: post-stay reviews, moderation and rating aggregation.

Property and host ratings are always recomputed from the published, non-hidden
property reviews rather than adjusted incrementally.
"""

from typing import Optional, List, Tuple, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from rentals.database import utcnow
from rentals.models.booking import BookingStatus
from rentals.models.notification import NotificationType
from rentals.models.review import Review, ReviewType
from rentals.models.user import User
from rentals.repositories.booking import BookingRepository
from rentals.repositories.property import PropertyRepository
from rentals.repositories.review import ReviewRepository
from rentals.repositories.user import UserRepository
from rentals.schemas.review import ReviewCreate, ReviewModerationRequest
from rentals.services.notification import NotificationService
from rentals.config import settings
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    BookingNotFoundError,
    PropertyNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.notifications = NotificationService(db_session)
    
    async def create_review(self, booking_id: uuid.UUID, review_data: ReviewCreate, reviewer: User) -> Review:
        """
        Review a completed stay as its guest.
        
        Raises:
            BookingNotFoundError: If the booking doesn't exist
            ForbiddenError: If the reviewer is not the booking's guest
            BadRequestError: If the booking is not completed
            ConflictError: If the guest already reviewed this booking
        """
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise BookingNotFoundError(str(booking_id))
        if booking.guest_id != reviewer.id:
            raise ForbiddenError("Only the guest of this booking can review it")
        if booking.status != BookingStatus.COMPLETED:
            raise BadRequestError("You can only review completed bookings")
        if await self.review_repo.get_by_booking_and_reviewer(booking_id, reviewer.id):
            raise ConflictError("You have already reviewed this booking")
        
        try:
            review = await self.review_repo.create({
                **review_data.model_dump(),
                "booking_id": booking.id,
                "property_id": booking.property_id,
                "reviewer_id": reviewer.id,
                "reviewee_id": booking.host_id,
                "review_type": ReviewType.PROPERTY,
            })
        except IntegrityError:
            raise ConflictError("You have already reviewed this booking")
        except Exception as e:
            logger.error(f"Failed to create review for booking {booking_id}: {e}")
            raise BadRequestError(f"Failed to create review: {str(e)}")
        
        await self.recompute_property_rating(booking.property_id)
        await self.recompute_host_rating(booking.host_id)
        
        await self.notifications.notify(
            booking.host_id,
            "New review",
            f"{reviewer.full_name} left a {review.rating}-star review",
            type=NotificationType.REVIEW,
            related_id=review.id,
            related_type="review",
        )
        logger.info(
            f"Review {review.id} created for property {booking.property_id}",
            extra={"booking_id": str(booking_id), "rating": review.rating}
        )
        return review
    
    async def list_property_reviews(
        self,
        property_id: uuid.UUID,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Review], int]:
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))
        page_size = min(page_size, settings.max_page_size)
        return await self.review_repo.list_for_property(property_id, skip=(page - 1) * page_size, limit=page_size)
    
    async def recompute_property_rating(self, property_id: uuid.UUID) -> None:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            return
        average, count = await self.review_repo.property_rating(property_id)
        await self.property_repo.save(property_obj, {"average_rating": average, "total_reviews": count})
        logger.debug(f"Property {property_id} rating recomputed: {average} over {count} reviews")
    
    async def recompute_host_rating(self, host_id: uuid.UUID) -> None:
        host = await self.user_repo.get_by_id(host_id)
        if not host:
            return
        average, count = await self.review_repo.host_rating(host_id)
        await self.user_repo.save(host, {"host_rating": average, "host_total_reviews": count})
        logger.debug(f"Host {host_id} rating recomputed: {average} over {count} reviews")
    
    async def recalculate_all(self) -> Dict[str, int]:
        """Recompute every property rating and every host rating."""
        property_ids = await self.property_repo.all_ids()
        for property_id in property_ids:
            await self.recompute_property_rating(property_id)
        
        host_ids = await self.property_repo.host_ids()
        for host_id in host_ids:
            await self.recompute_host_rating(host_id)
        
        logger.info(f"Ratings recalculated for {len(property_ids)} properties and {len(host_ids)} hosts")
        return {"properties_updated": len(property_ids), "hosts_updated": len(host_ids)}
    
    async def list_for_admin(self, admin_action=None, rating: Optional[int] = None, page: int = 1, page_size: int = 20):
        return await self.review_repo.list_for_admin(
            admin_action=admin_action, rating=rating, skip=(page - 1) * page_size, limit=page_size
        )
    
    async def get_review(self, review_id: uuid.UUID) -> Review:
        review = await self.review_repo.get_by_id(review_id)
        if not review:
            raise NotFoundError("Review", str(review_id))
        return review
    
    async def moderate_review(
        self,
        review_id: uuid.UUID,
        moderation: ReviewModerationRequest,
        moderator: User
    ) -> Review:
        """Apply an admin action, clear the flag and refresh the affected ratings."""
        try:
            review = await self.get_review(review_id)
            review = await self.review_repo.save(review, {
                "admin_action": moderation.admin_action,
                "is_flagged": False,
                "moderated_by_id": moderator.id,
                "moderated_at": utcnow(),
            })
            await self.recompute_property_rating(review.property_id)
            await self.recompute_host_rating(review.reviewee_id)
            logger.info(f"Review {review_id} moderated: {moderation.admin_action.value} by {moderator.id}")
            return review
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to moderate review {review_id}: {e}")
            raise BadRequestError(f"Failed to moderate review: {str(e)}")
    
    async def delete_review(self, review_id: uuid.UUID) -> Review:
        review = await self.get_review(review_id)
        property_id, reviewee_id = review.property_id, review.reviewee_id
        await self.review_repo.delete(review_id)
        await self.recompute_property_rating(property_id)
        await self.recompute_host_rating(reviewee_id)
        logger.info(f"Review {review_id} deleted")
        return review
