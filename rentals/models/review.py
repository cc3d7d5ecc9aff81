"""
Review model for post-stay feedback and moderation.
"""

from sqlalchemy import (
    String, Text, Integer, Boolean, DateTime, ForeignKey, Enum as SQLEnum, Uuid,
    UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
from datetime import datetime
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.user import User


class ReviewType(str, enum.Enum):
    PROPERTY = "property"
    GUEST = "guest"
    HOST = "host"


class ReviewModeration(str, enum.Enum):
    """Moderation outcome recorded by an admin."""
    NONE = "none"
    APPROVED = "approved"
    HIDDEN = "hidden"
    DELETED = "deleted"


# Admin actions that take a review out of public listings and rating aggregates
HIDDEN_ACTIONS = (ReviewModeration.HIDDEN, ReviewModeration.DELETED)

CATEGORY_RATINGS = (
    "cleanliness_rating",
    "accuracy_rating",
    "check_in_rating",
    "communication_rating",
    "location_rating",
    "value_rating",
)


class Review(Base):
    """
    Review left by a guest after a completed stay.
    One review per reviewer per booking.
    """
    
    __tablename__ = "reviews"
    
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    reviewee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    cleanliness_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    accuracy_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    check_in_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    communication_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    location_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    value_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    
    review_type: Mapped[ReviewType] = mapped_column(SQLEnum(ReviewType), nullable=False, default=ReviewType.PROPERTY)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    
    # Moderation
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flag_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_action: Mapped[ReviewModeration] = mapped_column(
        SQLEnum(ReviewModeration),
        nullable=False,
        default=ReviewModeration.NONE,
        index=True
    )
    moderated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    moderated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    # Host response
    response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    reviewer: Mapped["User"] = relationship("User", foreign_keys=[reviewer_id], lazy="selectin")
    
    __table_args__ = (
        UniqueConstraint("booking_id", "reviewer_id", name="uq_reviews_booking_reviewer"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
    
    def __repr__(self) -> str:
        return f"<Review(id={self.id}, property_id={self.property_id}, rating={self.rating})>"
    
    @property
    def is_visible(self) -> bool:
        return self.is_published and self.admin_action not in HIDDEN_ACTIONS
    
    def to_dict(self) -> dict:
        result = {
            "id": str(self.id),
            "booking_id": str(self.booking_id),
            "property_id": str(self.property_id),
            "reviewer_id": str(self.reviewer_id),
            "reviewee_id": str(self.reviewee_id),
            "rating": self.rating,
            "title": self.title,
            "comment": self.comment,
            "review_type": self.review_type.value,
            "is_published": self.is_published,
            "is_flagged": self.is_flagged,
            "flag_reason": self.flag_reason,
            "admin_action": self.admin_action.value,
            "moderated_at": self.moderated_at.isoformat() if self.moderated_at else None,
            "response": self.response,
            "response_date": self.response_date.isoformat() if self.response_date else None,
            "reviewer": self.reviewer.to_summary() if self.reviewer else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        for name in CATEGORY_RATINGS:
            result[name] = getattr(self, name)
        return result
