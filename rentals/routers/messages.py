"""
Conversation and message endpoints.
New messages are also pushed to connected sockets through the connection manager.
"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Path, Response, status

from rentals.models.user import User
from rentals.services.messaging import MessagingService
from rentals.schemas.message import (
    ConversationCreate,
    ConversationResponse,
    ConversationSummary,
    ConversationListResponse,
    MessageCreate,
    MessageResponse,
    MessageListResponse,
    ReadReceiptResponse
)
from rentals.schemas.common import MessageResponse as AckResponse
from rentals.utils.dependencies import get_current_active_user, get_messaging_service


router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get("/conversations", response_model=ConversationListResponse, summary="List conversations")
async def list_conversations(
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> ConversationListResponse:
    """Non-archived conversations, most recently active first."""
    rows = await messaging_service.list_conversations(current_user, archived=False)
    return ConversationListResponse(conversations=[ConversationSummary.model_validate(row) for row in rows])


@router.get("/conversations/archived", response_model=ConversationListResponse, summary="List archived conversations")
async def list_archived_conversations(
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> ConversationListResponse:
    rows = await messaging_service.list_conversations(current_user, archived=True)
    return ConversationListResponse(conversations=[ConversationSummary.model_validate(row) for row in rows])


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a conversation",
    description="Returns 200 with the existing conversation when the same participants and property already have one"
)
async def create_conversation(
    conversation_data: ConversationCreate,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> ConversationResponse:
    conversation, created = await messaging_service.create_conversation(conversation_data, current_user)
    if not created:
        response.status_code = status.HTTP_200_OK
    return ConversationResponse.model_validate(conversation.to_dict())


@router.get("/conversations/{conversation_id}/messages", response_model=MessageListResponse, summary="List messages")
async def get_messages(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    limit: int = Query(50, ge=1, le=100),
    before: Optional[UUID] = Query(None, description="Return messages older than this message id"),
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> MessageListResponse:
    messages, has_more = await messaging_service.get_messages(conversation_id, current_user, limit=limit, before=before)
    return MessageListResponse(
        messages=[MessageResponse.model_validate(message.to_dict()) for message in messages],
        has_more=has_more
    )


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message"
)
async def send_message(
    message_data: MessageCreate,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> MessageResponse:
    message = await messaging_service.send_message(conversation_id, message_data.message, current_user)
    return MessageResponse.model_validate(message.to_dict())


@router.post("/conversations/{conversation_id}/read", response_model=ReadReceiptResponse, summary="Mark conversation read")
async def mark_read(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> ReadReceiptResponse:
    count = await messaging_service.mark_read(conversation_id, current_user)
    return ReadReceiptResponse(conversation_id=str(conversation_id), marked_read=count)


@router.post("/conversations/{conversation_id}/archive", response_model=AckResponse, summary="Archive conversation")
async def archive_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> AckResponse:
    await messaging_service.set_archived(conversation_id, current_user, archived=True)
    return AckResponse(message="Conversation archived")


@router.post("/conversations/{conversation_id}/unarchive", response_model=AckResponse, summary="Unarchive conversation")
async def unarchive_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_active_user),
    messaging_service: MessagingService = Depends(get_messaging_service)
) -> AckResponse:
    await messaging_service.set_archived(conversation_id, current_user, archived=False)
    return AckResponse(message="Conversation unarchived")
