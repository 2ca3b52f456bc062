"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory database, scripted LLM client, chunk store and service fixtures
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import pytest

from askrag.boundary.db import create_engine_for_url, create_tables, get_async_session_factory
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.configs.retrieval import RetrievalSettings
from askrag.core.chunk_store import ChunkStore
from askrag.core.exceptions import BackendUnavailableError

DEFAULT_VECTOR = [0.0, 0.0, 1.0]


class FakeLLMClient:
    """
    Scripted stand-in for LLMClient.

    Attributes:
        vectors: Embedding per exact text; unknown texts get DEFAULT_VECTOR
        replies: Token scripts consumed by stream_chat in order; an
            Exception in a script is raised at that point of the stream
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        replies: list[list] | None = None,
        base_url: str = "http://llm.test",
        chat_model: str = "chat-model",
        embed_model: str = "embed-model",
    ) -> None:
        self.base_url = base_url
        self.chat_model = chat_model
        self.embed_model = embed_model
        self.vectors = vectors or {}
        self.replies = list(replies or [])
        self.embed_error: Exception | None = None
        self.embed_calls: list[list[str]] = []
        self.chat_calls: list[tuple[str, list]] = []

    async def embed(self, texts):
        self.embed_calls.append(list(texts))
        if self.embed_error is not None:
            raise self.embed_error
        return [list(self.vectors.get(text, DEFAULT_VECTOR)) for text in texts]

    async def embed_one(self, text):
        return (await self.embed([text]))[0]

    async def stream_chat(self, system, messages):
        self.chat_calls.append((system, list(messages)))
        if not self.replies:
            raise BackendUnavailableError("no scripted reply", operation="chat")
        for item in self.replies.pop(0):
            if isinstance(item, Exception):
                raise item
            yield item

    async def complete(self, system, messages):
        return "".join([token async for token in self.stream_chat(system, messages)])

    async def prompt(self, text):
        return await self.complete("", [])

    async def list_models(self):
        return [self.chat_model, self.embed_model]

    async def ping(self):
        return True


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    """Provide scripted LLM client."""
    return FakeLLMClient()


@pytest.fixture
def llm_holder(fake_llm: FakeLLMClient) -> LLMClientHolder:
    """Provide client holder wrapping the scripted client."""
    return LLMClientHolder(fake_llm)


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with tables and vector functions.

    Yields:
        AsyncEngine: Engine disposed after the test
    """
    engine = create_engine_for_url("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Provide session factory bound to the test engine."""
    return get_async_session_factory(test_engine)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Provide a database session on the test engine.

    Yields:
        AsyncSession: Test database session
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def chunk_store(session_factory, llm_holder: LLMClientHolder) -> ChunkStore:
    """Provide initialized chunk store over the test database."""
    store = ChunkStore(session_factory, llm_holder)
    await store.initialize()
    return store


@pytest.fixture
def retrieval_settings() -> RetrievalSettings:
    """Provide retrieval settings with defaults."""
    return RetrievalSettings()
