"""
Conversation and message repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from rentals.repositories.base import BaseRepository
from rentals.models.message import Conversation, ConversationParticipant, Message
from rentals.database import utcnow
from typing import Optional, List, Set, Dict
import uuid
import logging

logger = logging.getLogger(__name__)


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversations, their participants and messages."""
    
    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)
    
    async def create_conversation(
        self,
        participant_ids: Set[uuid.UUID],
        property_id: Optional[uuid.UUID] = None,
        booking_id: Optional[uuid.UUID] = None
    ) -> Conversation:
        try:
            conversation = Conversation(property_id=property_id, booking_id=booking_id)
            conversation.participants = [ConversationParticipant(user_id=user_id) for user_id in participant_ids]
            self.db.add(conversation)
            await self.db.commit()
            await self.db.refresh(conversation)
            logger.debug(f"Created conversation {conversation.id} with {len(participant_ids)} participants")
            return conversation
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create conversation: {e}")
            raise
    
    async def find_by_participants(
        self,
        participant_ids: Set[uuid.UUID],
        property_id: Optional[uuid.UUID] = None
    ) -> Optional[Conversation]:
        """Find a conversation with exactly this participant set and property."""
        query = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id.in_(participant_ids))
            .group_by(Conversation.id)
            .having(func.count(ConversationParticipant.id) == len(participant_ids))
        )
        if property_id is None:
            query = query.where(Conversation.property_id.is_(None))
        else:
            query = query.where(Conversation.property_id == property_id)
        
        for conversation in (await self.db.execute(query)).scalars().all():
            if set(conversation.participant_ids) == set(participant_ids):
                return conversation
        return None
    
    async def list_for_user(self, user_id: uuid.UUID, archived: bool = False) -> List[Conversation]:
        """Conversations the user takes part in, most recently updated first."""
        query = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user_id)
        )
        if archived:
            query = query.where(ConversationParticipant.archived_at.is_not(None))
        else:
            query = query.where(ConversationParticipant.archived_at.is_(None))
        
        result = await self.db.execute(query.order_by(Conversation.updated_at.desc()))
        return list(result.scalars().all())
    
    async def last_messages(self, conversation_ids: List[uuid.UUID]) -> Dict[uuid.UUID, Message]:
        if not conversation_ids:
            return {}
        latest = (
            select(Message.conversation_id, func.max(Message.created_at).label("created_at"))
            .where(Message.conversation_id.in_(conversation_ids))
            .group_by(Message.conversation_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message).join(
                latest,
                (Message.conversation_id == latest.c.conversation_id) & (Message.created_at == latest.c.created_at),
            )
        )
        return {message.conversation_id: message for message in result.scalars().all()}
    
    async def unread_counts(self, conversation_ids: List[uuid.UUID], user_id: uuid.UUID) -> Dict[uuid.UUID, int]:
        if not conversation_ids:
            return {}
        result = await self.db.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.recipient_id == user_id,
                Message.is_read.is_(False),
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result.all()}
    
    async def get_messages(
        self,
        conversation_id: uuid.UUID,
        limit: int = 50,
        before: Optional[uuid.UUID] = None
    ) -> List[Message]:
        """
        Messages in chronological order.
        
        Args:
            conversation_id: Conversation to read
            limit: Maximum number of messages
            before: Only messages older than this message id
        """
        query = select(Message).where(Message.conversation_id == conversation_id)
        if before:
            cursor = select(Message.created_at).where(Message.id == before).scalar_subquery()
            query = query.where(Message.created_at < cursor)
        
        result = await self.db.execute(query.order_by(Message.created_at.desc()).limit(limit))
        return list(reversed(result.scalars().all()))
    
    async def add_message(self, conversation: Conversation, message: Message) -> Message:
        """Store a message, bump the conversation and un-archive it for everyone."""
        try:
            self.db.add(message)
            conversation.updated_at = utcnow()
            for participant in conversation.participants:
                participant.archived_at = None
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to store message in conversation {conversation.id}: {e}")
            raise
    
    async def mark_read(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> int:
        try:
            result = await self.db.execute(
                update(Message)
                .where(
                    Message.conversation_id == conversation_id,
                    Message.recipient_id == user_id,
                    Message.is_read.is_(False),
                )
                .values(is_read=True, read_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to mark messages read in conversation {conversation_id}: {e}")
            raise
    
    async def set_archived(self, participant: ConversationParticipant, archived: bool) -> ConversationParticipant:
        participant.archived_at = utcnow() if archived else None
        await self.db.commit()
        return participant
