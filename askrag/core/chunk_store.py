"""
Chunk store.

Owns persisted chunks and their embeddings: idempotent-by-article inserts
with batched embedding, monotonic never-reused ids, similarity ranking and
positional lookups for neighbor stitching.

Database work serializes through one asyncio lock; embedding calls run
outside it so slow backends never block other requests' queries. Id
allocation has its own lock.

Dependencies: sqlalchemy, askrag.boundary.db, askrag.boundary.llm
System role: Vector store for the adaptive retrieval engine
"""

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from askrag.boundary.db.CRUD.chunk_crud import chunk_crud
from askrag.boundary.db.vector_functions import encode_vector
from askrag.boundary.llm.client import LLMClient
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.core.exceptions import ChunkStoreError
from askrag.models.chunk import NEIGHBOR_SCORE, ArticleCount, ChunkHit, InsertResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 16


class ChunkStore:
    """
    Persistent chunk store with similarity search.

    Attributes:
        batch_size: Chunks embedded and inserted per batch
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        llm: LLMClientHolder,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """
        Initialize chunk store.

        Args:
            session_factory: Async session factory bound to the chunk database
            llm: Holder of the active embedding client
            batch_size: Chunks per embedding batch
        """
        self._session_factory = session_factory
        self._llm = llm
        self.batch_size = batch_size
        self._db_lock = asyncio.Lock()
        self._id_lock = asyncio.Lock()
        self._next_id: int | None = None

    async def initialize(self) -> None:
        """Load the id high-water mark (max of persisted counter and MAX(id)+1)."""
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    counter = await chunk_crud.get_counter(session) or 1
                    next_id = max(counter, await chunk_crud.max_id(session) + 1)
                    await chunk_crud.set_counter(session, next_id)
                    await session.commit()
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"failed to initialize id counter: {e}", operation="init") from e
        async with self._id_lock:
            self._next_id = next_id
        logger.info(f"{__name__}:initialize - next chunk id {next_id}")

    async def _allocate_ids(self, count: int) -> int:
        """Reserve a contiguous id range and return its first id."""
        if self._next_id is None:
            await self.initialize()
        async with self._id_lock:
            first = self._next_id
            self._next_id = first + count
            return first

    async def insert(
        self,
        article: str,
        chunks: Sequence[str],
        client: LLMClient | None = None,
    ) -> InsertResult:
        """
        Embed and store an article's chunks.

        No-op when the article already has chunks. Each batch is embedded
        without holding the database lock, then committed on its own; a
        failing batch aborts the insert and earlier batches remain.

        Args:
            article: Source identifier
            chunks: Chunk texts in article order
            client: Embedding client to use (defaults to the active one)

        Returns:
            InsertResult: Number of chunks written, or skipped=True

        Raises:
            BackendUnavailableError: If embedding fails
            ChunkStoreError: If the database insert fails
        """
        if await self.count_article(article) > 0:
            logger.info(f"{__name__}:insert - Article exists, skipping", extra={"article": article})
            return InsertResult(article=article, inserted=0, skipped=True)

        client = client or self._llm.get()
        inserted = 0
        for start in range(0, len(chunks), self.batch_size):
            batch = list(chunks[start:start + self.batch_size])
            vectors = await client.embed(batch)
            first_id = await self._allocate_ids(len(batch))
            rows = [
                {
                    "id": first_id + offset,
                    "article": article,
                    "chunk_idx": start + offset,
                    "content": content,
                    "embedding": encode_vector(vector),
                }
                for offset, (content, vector) in enumerate(zip(batch, vectors))
            ]
            async with self._db_lock:
                try:
                    async with self._session_factory() as session:
                        await chunk_crud.insert_rows(session, rows)
                        await chunk_crud.set_counter(session, first_id + len(batch))
                        await session.commit()
                except SQLAlchemyError as e:
                    logger.error(f"{__name__}:insert - Batch at {start} failed: {e}")
                    raise ChunkStoreError(
                        f"insert failed for {article!r}: {e}",
                        operation="insert",
                        details={"article": article, "batch_start": start},
                    ) from e
            inserted += len(batch)

        logger.info(
            f"{__name__}:insert - Stored article",
            extra={"article": article, "chunks": inserted},
        )
        return InsertResult(article=article, inserted=inserted)

    async def similarity_search(self, query_vector: list[float], limit: int) -> list[ChunkHit]:
        """
        Hits ranked by cosine similarity, best first.

        Raises:
            ChunkStoreError: If the query fails
        """
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    return await chunk_crud.similarity_search(session, query_vector, limit)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"similarity query failed: {e}", operation="search") from e

    async def fetch_by_position(self, article: str, chunk_idx: int) -> str | None:
        """Chunk content at a position, or None if there is no such chunk."""
        if chunk_idx < 0:
            return None
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    return await chunk_crud.fetch_by_position(session, article, chunk_idx)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"position lookup failed: {e}", operation="fetch") from e

    async def article_chunks(self, article: str) -> list[ChunkHit]:
        """All chunks of an article in position order, scored as neighbors."""
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    rows = await chunk_crud.get_article_chunks(session, article)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"article lookup failed: {e}", operation="fetch") from e
        return [
            ChunkHit(article=row.article, chunk_idx=row.chunk_idx, content=row.content, score=NEIGHBOR_SCORE)
            for row in rows
        ]

    async def count_all(self) -> int:
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    return await chunk_crud.count_all(session)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"count failed: {e}", operation="count") from e

    async def count_article(self, article: str) -> int:
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    return await chunk_crud.count_article(session, article)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"count failed: {e}", operation="count") from e

    async def list_articles(self) -> list[ArticleCount]:
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    return await chunk_crud.list_articles(session)
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"listing failed: {e}", operation="list") from e

    async def delete_article(self, article: str) -> int:
        """
        Delete all chunks of an article.

        Returns:
            int: Number of chunks removed
        """
        async with self._db_lock:
            try:
                async with self._session_factory() as session:
                    deleted = await chunk_crud.delete_article(session, article)
                    await session.commit()
            except SQLAlchemyError as e:
                raise ChunkStoreError(f"delete failed: {e}", operation="delete") from e
        logger.info(f"{__name__}:delete_article - Removed {deleted} chunks", extra={"article": article})
        return deleted
