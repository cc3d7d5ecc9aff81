"""
Conversation, participant and message models for guest-host messaging.
"""

from sqlalchemy import Text, Boolean, DateTime, ForeignKey, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rentals.database import Base
from datetime import datetime
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rentals.models.user import User


class Conversation(Base):
    """
    A message thread between two or more users.
    Optionally scoped to a property and a booking; updated_at moves with every message.
    """
    
    __tablename__ = "conversations"
    
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    
    participants: Mapped[List["ConversationParticipant"]] = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    
    @property
    def participant_ids(self) -> List[uuid.UUID]:
        return [participant.user_id for participant in self.participants]
    
    def participant_for(self, user_id: uuid.UUID) -> Optional["ConversationParticipant"]:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id) if self.property_id else None,
            "booking_id": str(self.booking_id) if self.booking_id else None,
            "participants": [participant.user.to_summary() for participant in self.participants],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ConversationParticipant(Base):
    """Membership of a user in a conversation, with a per-user archive flag."""
    
    __tablename__ = "conversation_participants"
    
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="participants", lazy="raise")
    user: Mapped["User"] = relationship("User", lazy="selectin")
    
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
    )
    
    @property
    def added_at(self) -> datetime:
        return self.created_at


class Message(Base):
    """A single message in a conversation."""
    
    __tablename__ = "messages"
    
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    recipient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    
    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )
    
    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "conversation_id": str(self.conversation_id),
            "sender_id": str(self.sender_id),
            "recipient_id": str(self.recipient_id) if self.recipient_id else None,
            "message": self.message,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "sender": self.sender.to_summary() if self.sender else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
