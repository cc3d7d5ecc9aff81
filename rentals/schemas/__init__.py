"""
Pydantic schemas for request/response validation.
"""

from .common import PaginatedResponse, MessageResponse, pagination_meta
from .auth import (
    LoginRequest,
    TokenResponse,
    AuthResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    TokenValidationResponse,
)
from .user import UserCreate, UserUpdate, PasswordChange, UserResponse, UserSummary, UserListResponse
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertySummary,
    PropertyListResponse,
)
from .booking import BookingCreate, BookingResponse, BookingDetailResponse, BookingListResponse
from .payment import PaymentUpdate, RefundRequest
from .review import ReviewCreate, ReviewResponse

__all__ = [
    "PaginatedResponse",
    "MessageResponse",
    "pagination_meta",
    "LoginRequest",
    "TokenResponse",
    "AuthResponse",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "TokenValidationResponse",
    "UserCreate",
    "UserUpdate",
    "PasswordChange",
    "UserResponse",
    "UserSummary",
    "UserListResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertySummary",
    "PropertyListResponse",
    "BookingCreate",
    "BookingResponse",
    "BookingDetailResponse",
    "BookingListResponse",
    "PaymentUpdate",
    "RefundRequest",
    "ReviewCreate",
    "ReviewResponse",
]
