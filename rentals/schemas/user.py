"""
Pydantic schemas for user requests and responses.
Handles registration, profile updates and password validation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from rentals.models.user import UserRole
from rentals.schemas.common import PaginatedResponse


def validate_password_strength(v: str) -> str:
    """At least 8 characters with one letter and one digit."""
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not any(c.isalpha() for c in v):
        raise ValueError("Password must contain at least one letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one number")
    return v


def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip()


class UserCreate(BaseModel):
    """Schema for registering a new account."""
    
    email: EmailStr = Field(..., description="User's email address", examples=["guest@example.com"])
    password: str = Field(..., min_length=8, max_length=128, examples=["securepass123"])
    first_name: str = Field(..., min_length=1, max_length=100, examples=["Jane"])
    last_name: str = Field(..., min_length=1, max_length=100, examples=["Doe"])
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = Field(UserRole.GUEST, description="guest or host; admin accounts cannot self-register")
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()
    
    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)
    
    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        return _clean_name(v)


class UserUpdate(BaseModel):
    """Profile fields a user may change on their own account."""
    
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    profile_image_url: Optional[str] = Field(None, max_length=500)
    date_of_birth: Optional[date] = None
    
    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        return _clean_name(v)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
    
    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        return validate_password_strength(v)


class UserSummary(BaseModel):
    """Public profile fragment embedded in other resources."""
    
    id: str
    first_name: str
    last_name: str
    profile_image_url: Optional[str] = None
    host_rating: float = 0
    host_total_reviews: int = 0
    member_since: Optional[datetime] = None


class UserResponse(BaseModel):
    """Schema for user responses (no credentials)."""
    
    id: str = Field(..., description="User's unique identifier")
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    date_of_birth: Optional[date] = None
    role: UserRole
    is_verified: bool
    is_active: bool
    is_host: bool
    host_approved: bool
    host_rating: float
    host_total_reviews: int
    guest_rating: float
    guest_total_reviews: int
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(PaginatedResponse):
    users: List[UserResponse]
