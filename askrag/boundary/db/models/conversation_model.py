"""
Conversation ORM models.

A conversation owns an ordered, append-only list of messages. Messages are
read and written through ConversationCRUD rather than an ORM relationship so
async sessions never trigger lazy loads.

Dependencies: sqlalchemy, askrag.boundary.db.base
System role: Chat history persistence
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from askrag.boundary.db.base import Base, TimestampMixin, utcnow


class ConversationModel(Base, TimestampMixin):
    """
    Conversation ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        title: Display title, derived from the first question
        persona_id: Persona remembered for follow-up questions
    """

    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    persona_id: Mapped[str | None] = mapped_column(String(128), nullable=True)


class MessageModel(Base):
    """Single conversation message, ordered by seq within its conversation."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
