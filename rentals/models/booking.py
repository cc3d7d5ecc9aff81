"""
Booking model and its payment records.
A booking ties a guest, a property and a half-open date range [check_in, check_out)
together with a pricing snapshot taken at creation time.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Date, DateTime, ForeignKey, Enum as SQLEnum, Uuid, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
from datetime import date, datetime
from decimal import Decimal
import enum
import uuid
from typing import Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.user import User
    from rentals.models.property import Property


class BookingStatus(str, enum.Enum):
    """Booking lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentStatus(str, enum.Enum):
    """Payment states as reported by the payer or an admin."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL = "partial"


class CancelledBy(str, enum.Enum):
    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


# Booking statuses that occupy the calendar
BLOCKING_STATUSES: Tuple[BookingStatus, ...] = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

# Allowed booking status transitions; refunded is reachable by admins only
BOOKING_TRANSITIONS: Dict[BookingStatus, Tuple[BookingStatus, ...]] = {
    BookingStatus.PENDING: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED: (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
    BookingStatus.CANCELLED: (BookingStatus.REFUNDED,),
    BookingStatus.COMPLETED: (),
    BookingStatus.REFUNDED: (),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, Tuple[PaymentStatus, ...]] = {
    PaymentStatus.PENDING: (PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.PARTIAL),
    PaymentStatus.PARTIAL: (PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.REFUNDED),
    PaymentStatus.PAID: (PaymentStatus.REFUNDED, PaymentStatus.PARTIAL),
    PaymentStatus.FAILED: (PaymentStatus.PAID, PaymentStatus.PARTIAL, PaymentStatus.PENDING),
    PaymentStatus.REFUNDED: (),
}


def _money(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0.0


class Booking(Base):
    """
    Booking model for guest reservations.
    Prices are copied from the property at creation time and never recomputed.
    """
    
    __tablename__ = "bookings"
    
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    host_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    # Stay
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    guests_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    
    # Pricing snapshot
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    service_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    
    # State
    status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    # Notes
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    host_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    guest_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    # Cancellation
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[Optional[CancelledBy]] = mapped_column(SQLEnum(CancelledBy), nullable=True)
    cancelled_by_admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    
    # Relationships
    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")
    guest: Mapped["User"] = relationship("User", foreign_keys=[guest_id], lazy="selectin")
    host: Mapped["User"] = relationship("User", foreign_keys=[host_id], lazy="selectin")
    
    __table_args__ = (
        Index("ix_bookings_property_dates", "property_id", "check_in_date", "check_out_date"),
    )
    
    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, "
            f"{self.check_in_date}->{self.check_out_date}, status={self.status})>"
        )
    
    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days
    
    @property
    def is_cancellable(self) -> bool:
        return self.status in BLOCKING_STATUSES
    
    def is_party(self, user_id: uuid.UUID) -> bool:
        """Check whether a user is the guest or the host of this booking."""
        return user_id in (self.guest_id, self.host_id)
    
    def to_dict(self) -> dict:
        """
        Convert booking to dictionary with property and party summaries.
        
        Returns:
            Dictionary representation of booking
        """
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "guest_id": str(self.guest_id),
            "host_id": str(self.host_id),
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "nights": self.nights,
            "guests_count": self.guests_count,
            "base_price": _money(self.base_price),
            "cleaning_fee": _money(self.cleaning_fee),
            "security_deposit": _money(self.security_deposit),
            "service_fee": _money(self.service_fee),
            "total_amount": _money(self.total_amount),
            "refund_amount": _money(self.refund_amount),
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "special_requests": self.special_requests,
            "host_notes": self.host_notes,
            "guest_notes": self.guest_notes,
            "admin_notes": self.admin_notes,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_by": self.cancelled_by.value if self.cancelled_by else None,
            "property": self.property_rel.to_summary() if self.property_rel else None,
            "guest": self.guest.to_summary() if self.guest else None,
            "host": self.host.to_summary() if self.host else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class PaymentHistory(Base):
    """Audit row written on every payment change of a booking."""
    
    __tablename__ = "payment_history"
    
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    previous_status: Mapped[PaymentStatus] = mapped_column(SQLEnum(PaymentStatus), nullable=False)
    new_status: Mapped[PaymentStatus] = mapped_column(SQLEnum(PaymentStatus), nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "booking_id": str(self.booking_id),
            "previous_status": self.previous_status.value,
            "new_status": self.new_status.value,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "updated_by_id": str(self.updated_by_id) if self.updated_by_id else None,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Refund(Base):
    """A refund issued against a cancelled booking."""
    
    __tablename__ = "refunds"
    
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    refund_reason: Mapped[str] = mapped_column(Text, nullable=False)
    refund_method: Mapped[str] = mapped_column(String(50), nullable=False, default="original_payment")
    processed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "booking_id": str(self.booking_id),
            "refund_amount": _money(self.refund_amount),
            "refund_reason": self.refund_reason,
            "refund_method": self.refund_method,
            "processed_by_id": str(self.processed_by_id) if self.processed_by_id else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
