"""
Pydantic schemas for conversations and messages.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from rentals.schemas.user import UserSummary
import uuid


class ConversationCreate(BaseModel):
    participant_ids: List[uuid.UUID] = Field(..., min_length=2, description="Must include the caller")
    property_id: Optional[uuid.UUID] = None
    booking_id: Optional[uuid.UUID] = None


class MessageCreate(BaseModel):
    message: str = Field(..., max_length=5000)
    
    @field_validator("message")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    recipient_id: Optional[str] = None
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None
    created_at: datetime


class ConversationResponse(BaseModel):
    id: str
    property_id: Optional[str] = None
    booking_id: Optional[str] = None
    participants: List[UserSummary]
    created_at: datetime
    updated_at: datetime


class ConversationSummary(ConversationResponse):
    """Inbox row: the conversation plus what the caller needs to render it."""
    
    other_participant: Optional[UserSummary] = None
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
    archived: bool = False


class ConversationListResponse(BaseModel):
    conversations: List[ConversationSummary]


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    has_more: bool


class ReadReceiptResponse(BaseModel):
    conversation_id: str
    marked_read: int
