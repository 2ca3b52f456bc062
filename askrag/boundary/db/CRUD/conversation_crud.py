"""
Conversation CRUD operations.

Provides Create, Read, Update, Delete operations for ConversationModel
and its append-only messages.

Dependencies: sqlalchemy, askrag.boundary.db.models
System role: Chat history persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from askrag.boundary.db.base import utcnow
from askrag.boundary.db.CRUD.base_crud import BaseCRUD
from askrag.boundary.db.models.conversation_model import ConversationModel, MessageModel

TITLE_MAX_CHARS = 60


def make_title(question: str) -> str:
    """Conversation title from the first question."""
    title = " ".join(question.split())
    if len(title) > TITLE_MAX_CHARS:
        return title[:TITLE_MAX_CHARS] + "…"
    return title


class ConversationCRUD(BaseCRUD[ConversationModel]):
    """
    CRUD operations for ConversationModel.

    Extends BaseCRUD with message append and history queries.
    """

    def __init__(self) -> None:
        super().__init__(ConversationModel)

    async def list_recent(self, session: AsyncSession) -> Sequence[tuple[ConversationModel, int]]:
        """Conversations newest first, each with its message count."""
        counts = (
            select(MessageModel.conversation_id, func.count(MessageModel.id).label("n"))
            .group_by(MessageModel.conversation_id)
            .subquery()
        )
        stmt = (
            select(ConversationModel, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.conversation_id == ConversationModel.id)
            .order_by(ConversationModel.updated_at.desc())
        )
        result = await session.execute(stmt)
        return [(conversation, int(n)) for conversation, n in result.all()]

    async def add_message(
        self,
        session: AsyncSession,
        conversation: ConversationModel,
        role: str,
        content: str,
    ) -> MessageModel:
        """
        Append a message and touch the conversation.

        Args:
            session: Async database session
            conversation: Owning conversation
            role: 'user' or 'assistant'
            content: Message text

        Returns:
            Persisted message
        """
        stmt = select(func.coalesce(func.max(MessageModel.seq), -1)).where(
            MessageModel.conversation_id == conversation.id
        )
        next_seq = int((await session.execute(stmt)).scalar_one()) + 1
        message = MessageModel(
            conversation_id=conversation.id,
            seq=next_seq,
            role=role,
            content=content,
        )
        session.add(message)
        if not conversation.title and role == "user":
            conversation.title = make_title(content)
        conversation.updated_at = utcnow()
        await session.flush()
        return message

    async def get_messages(
        self,
        session: AsyncSession,
        conversation_id: UUID,
        limit: int | None = None,
    ) -> list[MessageModel]:
        """
        Messages in order; with a limit, only the most recent ones.
        """
        stmt = select(MessageModel).where(MessageModel.conversation_id == conversation_id)
        if limit is not None:
            stmt = stmt.order_by(MessageModel.seq.desc()).limit(limit)
            result = await session.execute(stmt)
            return list(reversed(result.scalars().all()))
        result = await session.execute(stmt.order_by(MessageModel.seq))
        return list(result.scalars().all())

    async def delete_with_messages(self, session: AsyncSession, conversation_id: UUID) -> bool:
        await session.execute(
            delete(MessageModel).where(MessageModel.conversation_id == conversation_id)
        )
        return await self.delete_by_id(session, conversation_id)


conversation_crud = ConversationCRUD()
