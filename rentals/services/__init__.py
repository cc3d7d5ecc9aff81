"""
Service layer for business logic implementation.
Contains services for accounts, listings, bookings, payments, reviews, messaging and moderation.
"""

from .auth import AuthService
from .property import PropertyService
from .image import ImageService
from .amenity import AmenityService, seed_default_amenities
from .booking import BookingService
from .payment import PaymentService
from .review import ReviewService
from .messaging import MessagingService
from .notification import NotificationService
from .favorite import FavoriteService
from .analytics import AnalyticsService
from .admin import AdminService
from .realtime import ConnectionManager, manager
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ImageService",
    "AmenityService",
    "seed_default_amenities",
    "BookingService",
    "PaymentService",
    "ReviewService",
    "MessagingService",
    "NotificationService",
    "FavoriteService",
    "AnalyticsService",
    "AdminService",
    "ConnectionManager",
    "manager",
    "ErrorHandlerService",
]
