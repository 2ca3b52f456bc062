"""
Conversation history adapter.

Business-level access to one conversation's messages, exposing history as
LangChain messages for the completion client.

Dependencies: langchain_core, askrag.boundary.db.CRUD.conversation_crud
System role: Chat history business logic adapter
"""

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from sqlalchemy.ext.asyncio import AsyncSession

from askrag.boundary.db.CRUD.conversation_crud import conversation_crud
from askrag.boundary.db.models.conversation_model import ConversationModel, MessageModel

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


def to_langchain(messages: list[MessageModel]) -> list[BaseMessage]:
    """Convert stored messages to LangChain message objects."""
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == USER_ROLE:
            converted.append(HumanMessage(content=message.content))
        else:
            converted.append(AIMessage(content=message.content))
    return converted


class ConversationAdapter:
    """
    Adapter for one conversation's message history.

    Every append commits immediately so a failed request still leaves the
    question (and any error text) in the history.
    """

    def __init__(self, conversation: ConversationModel, db: AsyncSession) -> None:
        """
        Initialize adapter.

        Args:
            conversation: Conversation being appended to
            db: AsyncSession for database operations
        """
        self.conversation = conversation
        self.db = db

    async def add_user_message(self, content: str) -> None:
        await conversation_crud.add_message(self.db, self.conversation, USER_ROLE, content)
        await self.db.commit()

    async def add_ai_message(self, content: str) -> None:
        await conversation_crud.add_message(self.db, self.conversation, ASSISTANT_ROLE, content)
        await self.db.commit()

    async def get_history(self, limit: int, exclude_latest: bool = False) -> list[BaseMessage]:
        """
        Most recent messages as LangChain messages.

        Args:
            limit: Maximum number of messages
            exclude_latest: Skip the newest message (the question just added)

        Returns:
            Messages oldest first
        """
        fetch = limit + 1 if exclude_latest else limit
        messages = await conversation_crud.get_messages(self.db, self.conversation.id, limit=fetch)
        if exclude_latest and messages:
            messages = messages[:-1]
        return to_langchain(messages[-limit:] if limit > 0 else [])
