"""
Messaging service for guest-host conversations.
Messages are persisted first and then published to live sockets through the ConnectionManager.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.models.message import Conversation, ConversationParticipant, Message
from rentals.models.notification import NotificationType
from rentals.models.user import User
from rentals.repositories.message import ConversationRepository
from rentals.repositories.user import UserRepository
from rentals.repositories.property import PropertyRepository
from rentals.repositories.booking import BookingRepository
from rentals.schemas.message import ConversationCreate
from rentals.services.notification import NotificationService
from rentals.services.realtime import ConnectionManager, conversation_room, user_room, manager as default_manager
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    PropertyNotFoundError,
    BookingNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

MAX_PAGE = 100


class MessagingService:
    def __init__(self, db_session: AsyncSession, connection_manager: Optional[ConnectionManager] = None):
        self.db = db_session
        self.conversation_repo = ConversationRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.notifications = NotificationService(db_session)
        self.manager = connection_manager or default_manager
    
    async def list_conversations(self, current_user: User, archived: bool = False) -> List[Dict[str, Any]]:
        """Inbox rows with last message, unread count and the other participant."""
        conversations = await self.conversation_repo.list_for_user(current_user.id, archived=archived)
        ids = [conversation.id for conversation in conversations]
        last_messages = await self.conversation_repo.last_messages(ids)
        unread = await self.conversation_repo.unread_counts(ids, current_user.id)
        
        rows = []
        for conversation in conversations:
            others = [p.user for p in conversation.participants if p.user_id != current_user.id]
            last = last_messages.get(conversation.id)
            rows.append({
                **conversation.to_dict(),
                "other_participant": others[0].to_summary() if others else None,
                "last_message": last.to_dict() if last else None,
                "unread_count": unread.get(conversation.id, 0),
                "archived": archived,
            })
        return rows
    
    async def create_conversation(self, data: ConversationCreate, current_user: User) -> Tuple[Conversation, bool]:
        """
        Start a conversation or reuse the one with the same participants and property.
        
        Returns:
            Tuple of (conversation, created)
            
        Raises:
            BadRequestError: If the caller is missing or fewer than two distinct users are given
            NotFoundError: If a participant, property or booking doesn't exist
        """
        participant_ids = set(data.participant_ids)
        if current_user.id not in participant_ids:
            raise BadRequestError("You must be one of the participants")
        if len(participant_ids) < 2:
            raise BadRequestError("A conversation needs at least two distinct participants")
        
        users = await self.user_repo.get_many(list(participant_ids))
        missing = participant_ids - {user.id for user in users}
        if missing:
            raise NotFoundError("User", ", ".join(sorted(str(user_id) for user_id in missing)))
        if data.property_id and not await self.property_repo.exists(data.property_id):
            raise PropertyNotFoundError(str(data.property_id))
        if data.booking_id and not await self.booking_repo.exists(data.booking_id):
            raise BookingNotFoundError(str(data.booking_id))
        
        try:
            existing = await self.conversation_repo.find_by_participants(participant_ids, data.property_id)
            if existing:
                participant = existing.participant_for(current_user.id)
                if participant.archived_at is not None:
                    await self.conversation_repo.set_archived(participant, False)
                logger.info(f"Reusing conversation {existing.id} for user {current_user.id}")
                return existing, False
            
            conversation = await self.conversation_repo.create_conversation(
                participant_ids, property_id=data.property_id, booking_id=data.booking_id
            )
            logger.info(
                f"Conversation created: {conversation.id}",
                extra={"participants": len(participant_ids), "property_id": str(data.property_id)}
            )
            return conversation, True
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create conversation: {e}")
            raise BadRequestError(f"Failed to create conversation: {str(e)}")
    
    async def get_conversation(self, conversation_id: uuid.UUID) -> Conversation:
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation", str(conversation_id))
        return conversation
    
    async def get_participant_conversation(
        self,
        conversation_id: uuid.UUID,
        current_user: User
    ) -> Tuple[Conversation, ConversationParticipant]:
        """
        Raises:
            NotFoundError: If the conversation doesn't exist
            ForbiddenError: If the user does not take part in it
        """
        conversation = await self.get_conversation(conversation_id)
        participant = conversation.participant_for(current_user.id)
        if participant is None:
            raise ForbiddenError("You are not a participant in this conversation")
        return conversation, participant
    
    async def get_messages(
        self,
        conversation_id: uuid.UUID,
        current_user: User,
        limit: int = 50,
        before: Optional[uuid.UUID] = None
    ) -> Tuple[List[Message], bool]:
        """
        Chronological page of messages ending just before the cursor.
        
        Returns:
            Tuple of (messages, has_more)
        """
        await self.get_participant_conversation(conversation_id, current_user)
        limit = max(1, min(limit, MAX_PAGE))
        messages = await self.conversation_repo.get_messages(conversation_id, limit=limit + 1, before=before)
        has_more = len(messages) > limit
        return (messages[1:] if has_more else messages), has_more
    
    async def send_message(self, conversation_id: uuid.UUID, body: str, sender: User) -> Message:
        """
        Persist a message and publish it.
        
        message:new goes to the conversation room and conversation:update to the
        personal room of every other participant.
        """
        conversation, _ = await self.get_participant_conversation(conversation_id, sender)
        others = [user_id for user_id in conversation.participant_ids if user_id != sender.id]
        recipient_id = others[0] if len(conversation.participant_ids) == 2 else None
        
        try:
            message = await self.conversation_repo.add_message(
                conversation,
                Message(
                    conversation_id=conversation.id,
                    sender_id=sender.id,
                    recipient_id=recipient_id,
                    message=body,
                ),
            )
        except Exception as e:
            logger.error(f"Failed to send message in conversation {conversation_id}: {e}")
            raise BadRequestError(f"Failed to send message: {str(e)}")
        
        payload = message.to_dict()
        await self.manager.emit(conversation_room(conversation.id), "message:new", payload)
        for user_id in others:
            await self.manager.emit(
                user_room(user_id),
                "conversation:update",
                {"conversation_id": str(conversation.id), "last_message": payload},
            )
            await self.notifications.notify(
                user_id,
                "New message",
                f"{sender.full_name}: {body[:100]}",
                type=NotificationType.MESSAGE,
                related_id=conversation.id,
                related_type="conversation",
            )
        
        logger.info(f"Message {message.id} sent in conversation {conversation_id} by {sender.id}")
        return message
    
    async def mark_read(self, conversation_id: uuid.UUID, current_user: User) -> int:
        await self.get_participant_conversation(conversation_id, current_user)
        count = await self.conversation_repo.mark_read(conversation_id, current_user.id)
        logger.debug(f"Marked {count} messages read in conversation {conversation_id} for {current_user.id}")
        return count
    
    async def set_archived(self, conversation_id: uuid.UUID, current_user: User, archived: bool) -> ConversationParticipant:
        """
        Raises:
            NotFoundError: If the conversation doesn't exist or the user is not in it
        """
        conversation = await self.get_conversation(conversation_id)
        participant = conversation.participant_for(current_user.id)
        if participant is None:
            raise NotFoundError("Conversation", str(conversation_id))
        participant = await self.conversation_repo.set_archived(participant, archived)
        logger.info(f"Conversation {conversation_id} {'archived' if archived else 'unarchived'} for {current_user.id}")
        return participant
    
    async def can_join(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        return conversation is not None and conversation.participant_for(user_id) is not None
