"""API routers."""

from .ask import router as ask_router
from .chats import router as chats_router
from .health import router as health_router
from .knowledge import router as knowledge_router
from .settings import router as settings_router
from .tools import router as tools_router

__all__ = [
    "ask_router",
    "chats_router",
    "health_router",
    "knowledge_router",
    "settings_router",
    "tools_router",
]
