"""
Ask and conversation schemas.

Request/response schemas for the ask stream and chat history endpoints.

Dependencies: pydantic
System role: Chat API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AskRequest(BaseModel):
    """Request schema for a streamed question."""

    question: str = Field(description="User question")
    chat_id: UUID | None = Field(default=None, description="Existing conversation to continue")
    persona_id: str | None = Field(default=None, description="Persona override for this request")
    debug: bool = Field(default=False, description="Emit a retrieval debug event")
    deep: bool = Field(default=False, description="Deep research mode with expanded k")
    offline: bool = Field(default=False, description="Return retrieved context without generation")

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("question must not be empty")
        return value


class MessageResponse(BaseModel):
    """Single message in a conversation."""

    role: str = Field(description="Message role: 'user' or 'assistant'")
    content: str
    time: datetime


class ConversationSummary(BaseModel):
    """Conversation list entry."""

    id: UUID
    title: str
    persona_id: str | None = None
    created: datetime
    updated: datetime
    message_count: int = 0


class ConversationResponse(ConversationSummary):
    """Conversation with its full message history."""

    messages: list[MessageResponse] = Field(default_factory=list)


class NewConversationRequest(BaseModel):
    """Request schema for creating an empty conversation."""

    title: str | None = None
    persona_id: str | None = None
