"""FastAPI dependencies."""

from .dependencies import (
    ServiceCache,
    get_conversation_service,
    get_db,
    get_knowledge_service,
    get_runtime_store,
    get_service_cache,
    get_tool_service,
)

__all__ = [
    "ServiceCache",
    "get_conversation_service",
    "get_db",
    "get_knowledge_service",
    "get_runtime_store",
    "get_service_cache",
    "get_tool_service",
]
