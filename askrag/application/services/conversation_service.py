"""
Conversation service.

Creates, resolves, lists and deletes conversations.

Dependencies: askrag.boundary.db
System role: Chat history management for API and ask pipeline
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from askrag.boundary.db.CRUD.conversation_crud import conversation_crud, make_title
from askrag.boundary.db.models.conversation_model import ConversationModel
from askrag.core.exceptions import ConversationNotFoundError
from askrag.models.chat import ConversationResponse, ConversationSummary, MessageResponse

logger = logging.getLogger(__name__)


class ConversationService:
    """Conversation lifecycle operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, title: str = "", persona_id: str | None = None) -> ConversationModel:
        conversation = await conversation_crud.create(
            self.db, title=make_title(title) if title else "", persona_id=persona_id
        )
        await self.db.commit()
        logger.info(f"{__name__}:create - Conversation {conversation.id}")
        return conversation

    async def resolve(
        self,
        chat_id: UUID | None,
        question: str,
        persona_id: str | None = None,
    ) -> ConversationModel:
        """
        Existing conversation for chat_id, or a new one titled after the question.

        An explicit persona_id is remembered on the conversation.
        """
        conversation = None
        if chat_id is not None:
            conversation = await conversation_crud.get_by_id(self.db, chat_id)
            if conversation is None:
                logger.info(f"{__name__}:resolve - Unknown chat_id {chat_id}, creating new")
        if conversation is None:
            return await self.create(title=question, persona_id=persona_id)
        if persona_id and conversation.persona_id != persona_id:
            conversation.persona_id = persona_id
            await self.db.commit()
        return conversation

    async def list_conversations(self) -> list[ConversationSummary]:
        rows = await conversation_crud.list_recent(self.db)
        return [
            ConversationSummary(
                id=conversation.id,
                title=conversation.title,
                persona_id=conversation.persona_id,
                created=conversation.created_at,
                updated=conversation.updated_at,
                message_count=count,
            )
            for conversation, count in rows
        ]

    async def get(self, chat_id: UUID) -> ConversationResponse:
        """
        Conversation with messages.

        Raises:
            ConversationNotFoundError: If no such conversation exists
        """
        conversation = await conversation_crud.get_by_id(self.db, chat_id)
        if conversation is None:
            raise ConversationNotFoundError(str(chat_id))
        messages = await conversation_crud.get_messages(self.db, chat_id)
        return ConversationResponse(
            id=conversation.id,
            title=conversation.title,
            persona_id=conversation.persona_id,
            created=conversation.created_at,
            updated=conversation.updated_at,
            message_count=len(messages),
            messages=[
                MessageResponse(role=m.role, content=m.content, time=m.created_at) for m in messages
            ],
        )

    async def delete(self, chat_id: UUID) -> None:
        """
        Raises:
            ConversationNotFoundError: If no such conversation exists
        """
        deleted = await conversation_crud.delete_with_messages(self.db, chat_id)
        if not deleted:
            await self.db.rollback()
            raise ConversationNotFoundError(str(chat_id))
        await self.db.commit()
