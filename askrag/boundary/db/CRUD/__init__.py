"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from askrag.boundary.db.CRUD import conversation_crud

    conversation = await conversation_crud.get_by_id(db, chat_id)
"""

from askrag.boundary.db.CRUD.base_crud import BaseCRUD
from askrag.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from askrag.boundary.db.CRUD.conversation_crud import ConversationCRUD, conversation_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "chunk_crud",
    "ConversationCRUD",
    "conversation_crud",
]
