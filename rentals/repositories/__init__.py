"""
Repository layer for data access operations.
"""

from rentals.repositories.base import BaseRepository
from rentals.repositories.user import UserRepository
from rentals.repositories.property import PropertyRepository, PropertySearchFilters
from rentals.repositories.image import ImageRepository
from rentals.repositories.amenity import AmenityRepository
from rentals.repositories.booking import BookingRepository, BookingListFilters
from rentals.repositories.review import ReviewRepository
from rentals.repositories.message import ConversationRepository
from rentals.repositories.notification import NotificationRepository
from rentals.repositories.favorite import FavoriteRepository
from rentals.repositories.blocked_date import BlockedDateRepository
from rentals.repositories.admin_log import AdminLogRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "ImageRepository",
    "AmenityRepository",
    "BookingRepository",
    "BookingListFilters",
    "ReviewRepository",
    "ConversationRepository",
    "NotificationRepository",
    "FavoriteRepository",
    "BlockedDateRepository",
    "AdminLogRepository",
]
