"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, TimestampMixin: Model building blocks
  - create_engine_for_url(), get_async_session_factory(), create_tables()
  - ChunkModel, IdCounterModel, ConversationModel, MessageModel
  - chunk_crud, conversation_crud: CRUD operation singletons

Dependencies: sqlalchemy, aiosqlite
System role: Database adapter for chunks, embeddings and conversations
"""

from askrag.boundary.db.base import Base, TimestampMixin
from askrag.boundary.db.connection import create_engine_for_url, create_tables, get_async_session_factory
from askrag.boundary.db.models import (
    ChunkModel,
    ConversationModel,
    IdCounterModel,
    MessageModel,
)
from askrag.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    ConversationCRUD,
    chunk_crud,
    conversation_crud,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "create_engine_for_url",
    "create_tables",
    "get_async_session_factory",
    "ChunkModel",
    "ConversationModel",
    "IdCounterModel",
    "MessageModel",
    "BaseCRUD",
    "ChunkCRUD",
    "ConversationCRUD",
    "chunk_crud",
    "conversation_crud",
]
