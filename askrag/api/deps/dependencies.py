"""
Dependency injection container.

Builds the long-lived components once per application and hands out
request-scoped services through FastAPI dependencies.

Dependencies: askrag.configs, askrag.application, askrag.boundary, askrag.core
System role: DI container for service injection
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from askrag.application.services import ConversationService, KnowledgeService, ToolService
from askrag.boundary.db import create_engine_for_url, create_tables, get_async_session_factory
from askrag.boundary.llm import LLMClientHolder, build_llm_client
from askrag.boundary.settings_store import RuntimeSettingsStore, seed_runtime_settings
from askrag.boundary.web import WebFetcher
from askrag.configs import Settings, get_settings
from askrag.core.chunk_store import ChunkStore
from askrag.core.retrieval import ContextAssembler
from askrag.core.tools.gate import ToolGate


class ServiceCache:
    """
    Container for the shared component instances.

    Components are built lazily on first access. An engine or LLM holder
    passed in replaces the one derived from settings.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        engine: AsyncEngine | None = None,
        llm: LLMClientHolder | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_engine = engine is None
        self._engine = engine
        self._llm = llm
        self._session_factory = None
        self._runtime = None
        self._chunk_store = None
        self._fetcher = None
        self._gate = None
        self._assembler = None
        self._knowledge = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            db = self.settings.database
            self._engine = create_engine_for_url(db.url, echo=db.echo_sql)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = get_async_session_factory(self.engine)
        return self._session_factory

    @property
    def runtime(self) -> RuntimeSettingsStore:
        """Runtime settings store, loaded from the settings file."""
        if self._runtime is None:
            self._runtime = RuntimeSettingsStore.load(
                self.settings.settings_path, seed_runtime_settings(self.settings)
            )
        return self._runtime

    @property
    def llm(self) -> LLMClientHolder:
        if self._llm is None:
            self._llm = LLMClientHolder(build_llm_client(self.runtime.get(), self.settings.llm))
        return self._llm

    @property
    def chunk_store(self) -> ChunkStore:
        if self._chunk_store is None:
            self._chunk_store = ChunkStore(
                self.session_factory, self.llm, batch_size=self.settings.retrieval.embed_batch_size
            )
        return self._chunk_store

    @property
    def fetcher(self) -> WebFetcher:
        if self._fetcher is None:
            self._fetcher = WebFetcher(self.settings.tools)
        return self._fetcher

    @property
    def gate(self) -> ToolGate:
        if self._gate is None:
            self._gate = ToolGate(self.fetcher, self.llm, self.settings.tools)
        return self._gate

    @property
    def assembler(self) -> ContextAssembler:
        if self._assembler is None:
            self._assembler = ContextAssembler(self.chunk_store, self.llm, self.settings.retrieval)
        return self._assembler

    @property
    def knowledge(self) -> KnowledgeService:
        if self._knowledge is None:
            self._knowledge = KnowledgeService(
                self.chunk_store, self.llm, self.runtime, self.settings.retrieval
            )
        return self._knowledge

    async def startup(self) -> None:
        """Create tables and load the chunk id counter."""
        await create_tables(self.engine)
        await self.chunk_store.initialize()

    async def shutdown(self) -> None:
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None if self._owns_engine else self._engine
        self._session_factory = None
        self._chunk_store = None
        self._fetcher = None
        self._gate = None
        self._assembler = None
        self._knowledge = None


def get_service_cache(request: Request) -> ServiceCache:
    """Service cache attached to the running application."""
    return request.app.state.services


async def get_db(cache: ServiceCache = Depends(get_service_cache)) -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session.

    Yields:
        AsyncSession: Session closed after the request
    """
    async with cache.session_factory() as session:
        yield session


def get_conversation_service(db: AsyncSession = Depends(get_db)) -> ConversationService:
    return ConversationService(db=db)


def get_knowledge_service(cache: ServiceCache = Depends(get_service_cache)) -> KnowledgeService:
    return cache.knowledge


def get_tool_service(cache: ServiceCache = Depends(get_service_cache)) -> ToolService:
    return ToolService(gate=cache.gate, knowledge=cache.knowledge, runtime=cache.runtime)


def get_runtime_store(cache: ServiceCache = Depends(get_service_cache)) -> RuntimeSettingsStore:
    return cache.runtime
