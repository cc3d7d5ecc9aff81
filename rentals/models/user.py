"""
User model with authentication and role management.
Handles guest, host and administrator accounts.
"""

from sqlalchemy import String, Boolean, Integer, Numeric, Date, DateTime, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
from datetime import date, datetime
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.property import Property

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


class User(Base):
    """
    User model for authentication and authorization.
    A single account can book stays and, once it becomes a host, list properties.
    """
    
    __tablename__ = "users"
    
    # Identification and authentication
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )
    
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )
    
    # Profile
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    
    # Role and status
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.GUEST,
        index=True,
        comment="User role for access control"
    )
    
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the user account is active"
    )
    
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    banned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ban_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    # Host profile
    is_host: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    host_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    host_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    host_total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    
    # Guest profile
    guest_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    guest_total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    
    # Relationships
    properties: Mapped[List["Property"]] = relationship(
        "Property",
        back_populates="host",
        foreign_keys="Property.host_id",
        passive_deletes=True,
        lazy="raise"
    )
    
    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
    
    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.
        
        Args:
            email: Email address to validate
            
        Returns:
            Normalized email address
            
        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")
    
    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.
        
        Args:
            password: Plain text password
            
        Returns:
            Hashed password string
        """
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")
        
        return pwd_context.hash(password)
    
    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return pwd_context.verify(password, self.hashed_password)
    
    def set_password(self, password: str) -> None:
        self.hashed_password = self.hash_password(password)
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
    
    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN
    
    @property
    def can_host(self) -> bool:
        """Hosts and admins may list properties."""
        return self.is_admin or self.is_host
    
    def can_manage_property(self, property_host_id: uuid.UUID) -> bool:
        """
        Check if user can manage a specific property.
        
        Args:
            property_host_id: UUID of the property's host
            
        Returns:
            True if user can manage the property, False otherwise
        """
        if self.is_admin:
            return True
        
        return self.id == property_host_id
    
    def to_summary(self) -> dict:
        """Public profile fragment embedded in other resources."""
        return {
            "id": str(self.id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "profile_image_url": self.profile_image_url,
            "host_rating": float(self.host_rating or 0),
            "host_total_reviews": self.host_total_reviews or 0,
            "member_since": self.created_at.isoformat() if self.created_at else None,
        }
    
    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding sensitive data).
        
        Returns:
            Dictionary representation of user
        """
        return {
            "id": str(self.id),
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "phone": self.phone,
            "profile_image_url": self.profile_image_url,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "role": self.role.value,
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "is_host": self.is_host,
            "host_approved": self.host_approved,
            "host_rating": float(self.host_rating or 0),
            "host_total_reviews": self.host_total_reviews or 0,
            "guest_rating": float(self.guest_rating or 0),
            "guest_total_reviews": self.guest_total_reviews or 0,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
