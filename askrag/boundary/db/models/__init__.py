"""ORM models."""

from askrag.boundary.db.models.chunk_model import ChunkModel, IdCounterModel
from askrag.boundary.db.models.conversation_model import ConversationModel, MessageModel

__all__ = ["ChunkModel", "IdCounterModel", "ConversationModel", "MessageModel"]
