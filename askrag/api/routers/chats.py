"""
Conversation API endpoints.

Routes:
- GET /chats - List conversations, most recent first
- POST /chats - Create an empty conversation
- GET /chats/{chat_id} - Get a conversation with its messages
- DELETE /chats/{chat_id} - Delete a conversation

Dependencies: askrag.application.services.conversation_service
System role: Chat history HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from askrag.api.deps import get_conversation_service
from askrag.application.services.conversation_service import ConversationService
from askrag.core.exceptions import ConversationNotFoundError
from askrag.models.chat import (
    ConversationResponse,
    ConversationSummary,
    NewConversationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=list[ConversationSummary])
async def list_chats(
    conversations: ConversationService = Depends(get_conversation_service),
) -> list[ConversationSummary]:
    try:
        return await conversations.list_conversations()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve chats: {str(e)}")


@router.post("", response_model=ConversationResponse)
async def create_chat(
    request: NewConversationRequest,
    conversations: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    """
    Create an empty conversation.

    Raises:
        HTTPException(500): Creation failed
    """
    try:
        conversation = await conversations.create(title=request.title, persona_id=request.persona_id)
        return await conversations.get(conversation.id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Chat creation failed: {str(e)}")


@router.get("/{chat_id}", response_model=ConversationResponse)
async def get_chat(
    chat_id: UUID,
    conversations: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    """
    Get a conversation with its messages in order.

    Raises:
        HTTPException(404): Conversation not found
    """
    try:
        return await conversations.get(chat_id)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{chat_id}", status_code=204)
async def delete_chat(
    chat_id: UUID,
    conversations: ConversationService = Depends(get_conversation_service),
) -> None:
    """
    Delete a conversation and its messages.

    Raises:
        HTTPException(404): Conversation not found
    """
    try:
        await conversations.delete(chat_id)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    logger.info(f"{__name__}:delete_chat - Deleted {chat_id}")
