"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, askrag.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from askrag import __version__
from askrag.api.deps import ServiceCache
from askrag.api.routers import (
    ask_router,
    chats_router,
    health_router,
    knowledge_router,
    settings_router,
    tools_router,
)
from askrag.observability import configure_logging
from askrag.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Creates tables and loads the chunk id counter on startup; disposes the
    engine on shutdown.
    """
    cache: ServiceCache = app.state.services
    configure_logging(cache.settings.log_level)

    # Startup
    logger.info("Preparing database and chunk store...")
    await cache.startup()
    runtime = cache.runtime.get()
    logger.info(
        "Service ready",
        extra={"base_url": runtime.base_url, "chat_model": runtime.chat_model, "embed_model": runtime.embed_model},
    )

    yield

    # Shutdown
    await cache.shutdown()
    logger.info("Service cache cleared")


def create_app(services: ServiceCache | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        services: Component container (built from settings if omitted)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="askrag API",
        description="Adaptive retrieval and tool orchestration over a local knowledge base",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services or ServiceCache()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.include_router(health_router, prefix="/api")
    app.include_router(ask_router, prefix="/api")
    app.include_router(knowledge_router, prefix="/api")
    app.include_router(tools_router, prefix="/api")
    app.include_router(chats_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")

    return app


def run() -> None:
    uvicorn.run(
        "askrag.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    run()
