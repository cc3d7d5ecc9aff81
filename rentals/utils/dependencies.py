"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.database import get_db
from rentals.models.user import User, UserRole
from rentals.services.auth import AuthService
from rentals.services.property import PropertyService
from rentals.services.image import ImageService
from rentals.services.amenity import AmenityService
from rentals.services.booking import BookingService
from rentals.services.payment import PaymentService
from rentals.services.review import ReviewService
from rentals.services.messaging import MessagingService
from rentals.services.notification import NotificationService
from rentals.services.favorite import FavoriteService
from rentals.services.analytics import AnalyticsService
from rentals.services.admin import AdminService
from rentals.services.realtime import ConnectionManager, get_connection_manager
from rentals.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    InsufficientPermissionsError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_image_service(db: AsyncSession = Depends(get_db)) -> ImageService:
    return ImageService(db)


async def get_amenity_service(db: AsyncSession = Depends(get_db)) -> AmenityService:
    return AmenityService(db)


async def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db)


async def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


async def get_messaging_service(
    db: AsyncSession = Depends(get_db),
    connection_manager: ConnectionManager = Depends(get_connection_manager)
) -> MessagingService:
    return MessagingService(db, connection_manager)


async def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.
    
    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service
        
    Returns:
        Current User object
        
    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")
    
    return await auth_service.get_current_user(credentials.credentials)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active:
        raise InactiveUserError()
    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")
    return current_user


async def get_current_host_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """Current user with the host role (or admin)."""
    if current_user.role not in (UserRole.HOST, UserRole.ADMIN):
        raise InsufficientPermissionsError("access host resources")
    return current_user


def require_roles(*roles: UserRole):
    """
    Create a dependency that accepts any of the given roles.
    
    Args:
        roles: Roles allowed through
        
    Returns:
        Dependency function
    """
    async def role_dependency(
        current_user: User = Depends(get_current_active_user)
    ) -> User:
        if current_user.role not in roles:
            allowed = " or ".join(role.value for role in roles)
            raise InsufficientPermissionsError(f"perform this action (requires {allowed})")
        return current_user
    
    return role_dependency


# Public endpoints that benefit from user context
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a valid token is provided, otherwise None.
    Invalid, expired or inactive tokens are treated as anonymous access.
    """
    if not credentials:
        return None
    return await auth_service.validate_token(credentials.credentials)
