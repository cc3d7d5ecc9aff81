"""
Database models for the Vacation Rental API.
Importing this package registers every table on the shared metadata.
"""

from rentals.models.user import User, UserRole
from rentals.models.property import (
    Property, PropertyType, PropertyStatus, PropertyStatusHistory, property_amenities
)
from rentals.models.image import PropertyImage
from rentals.models.amenity import Amenity, AmenityCategory
from rentals.models.booking import (
    Booking, BookingStatus, PaymentStatus, CancelledBy, PaymentHistory, Refund
)
from rentals.models.review import Review, ReviewType, ReviewModeration
from rentals.models.message import Conversation, ConversationParticipant, Message
from rentals.models.notification import Notification, NotificationType
from rentals.models.favorite import Favorite
from rentals.models.blocked_date import BlockedDate, BlockReason
from rentals.models.admin_log import AdminActionLog

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "PropertyStatusHistory",
    "property_amenities",
    "PropertyImage",
    "Amenity",
    "AmenityCategory",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "CancelledBy",
    "PaymentHistory",
    "Refund",
    "Review",
    "ReviewType",
    "ReviewModeration",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "Notification",
    "NotificationType",
    "Favorite",
    "BlockedDate",
    "BlockReason",
    "AdminActionLog",
]
