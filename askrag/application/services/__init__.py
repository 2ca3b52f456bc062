"""Application services."""

from .ask_service import AskService
from .conversation_service import ConversationService
from .knowledge_service import KnowledgeService
from .tool_service import ToolService

__all__ = [
    "AskService",
    "ConversationService",
    "KnowledgeService",
    "ToolService",
]
