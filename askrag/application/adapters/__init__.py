"""Adapters between persistence and application services."""

from askrag.application.adapters.conversation_adapter import ConversationAdapter

__all__ = ["ConversationAdapter"]
