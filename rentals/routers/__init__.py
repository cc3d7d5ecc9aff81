"""
API routers package.
"""

from .auth import router as auth_router
from .users import router as users_router
from .properties import router as properties_router
from .images import router as images_router
from .amenities import router as amenities_router
from .bookings import router as bookings_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .favorites import router as favorites_router
from .analytics import router as analytics_router
from .admin import router as admin_router
from .realtime import router as realtime_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "images_router",
    "amenities_router",
    "bookings_router",
    "messages_router",
    "notifications_router",
    "favorites_router",
    "analytics_router",
    "admin_router",
    "realtime_router",
]
