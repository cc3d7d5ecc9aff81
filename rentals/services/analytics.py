"""
Analytics service: host and admin dashboards plus user administration.
"""

from datetime import datetime, timedelta
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database import utcnow
from rentals.models.property import PropertyStatus
from rentals.models.user import User, UserRole
from rentals.repositories.booking import BookingRepository
from rentals.repositories.property import PropertyRepository
from rentals.repositories.review import ReviewRepository
from rentals.repositories.user import UserRepository
from rentals.schemas.analytics import UserStatusUpdate
from rentals.services.admin import AdminService
from rentals.utils.exceptions import BadRequestError, NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AnalyticsService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.review_repo = ReviewRepository(db_session)
        self.admin_service = AdminService(db_session)
    
    async def host_stats(self, host: User) -> Dict[str, Any]:
        """Totals for a host's listings; revenue counts confirmed and completed bookings."""
        avg_rating, total_reviews = await self.review_repo.host_rating(host.id)
        return {
            "total_properties": await self.property_repo.count_listed(host.id),
            "total_bookings": await self.booking_repo.count_bookings(host.id),
            "total_revenue": float(await self.booking_repo.revenue(host.id)),
            "monthly_revenue": float(await self.booking_repo.revenue(host.id, since=month_start(utcnow()))),
            "avg_rating": float(avg_rating),
            "total_reviews": total_reviews,
        }
    
    async def admin_stats(self) -> Dict[str, Any]:
        this_month = month_start(utcnow())
        last_month = month_start(this_month - timedelta(days=1))
        return {
            "total_users": await self.user_repo.count(),
            "total_properties": await self.property_repo.count_listed(),
            "total_bookings": await self.booking_repo.count_bookings(),
            "total_revenue": float(await self.booking_repo.revenue()),
            "pending_properties": await self.property_repo.count({"status": PropertyStatus.PENDING}),
            "new_users_this_month": await self.user_repo.count_created_between(this_month, utcnow() + timedelta(seconds=1)),
            "new_users_last_month": await self.user_repo.count_created_between(last_month, this_month),
        }
    
    async def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[User], int]:
        return await self.user_repo.search_users(search, role, skip=(page - 1) * page_size, limit=page_size)
    
    async def _get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user
    
    async def update_user_status(self, user_id: uuid.UUID, status_data: UserStatusUpdate, admin: User) -> User:
        """
        Activate, deactivate or suspend an account.
        
        Raises:
            BadRequestError: If an admin tries to deactivate their own account
        """
        user = await self._get_user(user_id)
        if user.id == admin.id and status_data.status != "active":
            raise BadRequestError("You cannot deactivate your own account")
        
        changes: Dict[str, Any] = {"is_active": status_data.status == "active"}
        if status_data.status == "suspended":
            changes["banned_at"] = utcnow()
            changes["ban_reason"] = status_data.reason
        elif status_data.status == "active":
            changes["banned_at"] = None
            changes["ban_reason"] = None
        
        user = await self.user_repo.save(user, changes)
        await self.admin_service.log_action(
            admin, f"user_{status_data.status}", "user", user.id, status_data.reason
        )
        logger.info(f"User {user_id} status set to {status_data.status} by admin {admin.id}")
        return user
    
    async def approve_host(self, user_id: uuid.UUID, admin: User) -> User:
        """Approve a user as host. Admin accounts keep their role."""
        user = await self._get_user(user_id)
        changes: Dict[str, Any] = {"is_host": True, "host_approved": True}
        if user.role != UserRole.ADMIN:
            changes["role"] = UserRole.HOST
        user = await self.user_repo.save(user, changes)
        await self.admin_service.log_action(admin, "approve_host", "user", user.id, f"Approved host {user.email}")
        logger.info(f"User {user_id} approved as host by admin {admin.id}")
        return user
