"""
Chunk CRUD operations.

Queries over the chunks table, including the similarity-ranked query that
relies on the vec_cosine_similarity SQL function.

Dependencies: sqlalchemy, askrag.boundary.db.models
System role: Chunk persistence and similarity ranking
"""

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from askrag.boundary.db.CRUD.base_crud import BaseCRUD
from askrag.boundary.db.models.chunk_model import ChunkModel, IdCounterModel
from askrag.boundary.db.vector_functions import COSINE_FUNCTION, encode_vector
from askrag.models.chunk import ArticleCount, ChunkHit

CHUNK_COUNTER = "chunks"


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel and its id counter."""

    def __init__(self) -> None:
        super().__init__(ChunkModel)

    async def count_all(self, session: AsyncSession) -> int:
        return await self.count(session)

    async def count_article(self, session: AsyncSession, article: str) -> int:
        return await self.count(session, ChunkModel.article == article)

    async def list_articles(self, session: AsyncSession) -> list[ArticleCount]:
        stmt = (
            select(ChunkModel.article, func.count(ChunkModel.id))
            .group_by(ChunkModel.article)
            .order_by(ChunkModel.article)
        )
        result = await session.execute(stmt)
        return [ArticleCount(article=article, count=count) for article, count in result.all()]

    async def get_article_chunks(self, session: AsyncSession, article: str) -> list[ChunkModel]:
        """All chunks of an article in position order."""
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.article == article)
            .order_by(ChunkModel.chunk_idx)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def fetch_by_position(
        self,
        session: AsyncSession,
        article: str,
        chunk_idx: int,
    ) -> str | None:
        stmt = select(ChunkModel.content).where(
            ChunkModel.article == article,
            ChunkModel.chunk_idx == chunk_idx,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def similarity_search(
        self,
        session: AsyncSession,
        query_vector: list[float],
        limit: int,
    ) -> list[ChunkHit]:
        """
        Rank chunks by cosine similarity to the query vector.

        Args:
            session: Async database session
            query_vector: Query embedding
            limit: Maximum number of hits

        Returns:
            Hits ordered by score descending
        """
        score = getattr(func, COSINE_FUNCTION)(ChunkModel.embedding, encode_vector(query_vector))
        score = score.label("score")
        stmt = (
            select(ChunkModel.article, ChunkModel.chunk_idx, ChunkModel.content, score)
            .order_by(score.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [
            ChunkHit(article=article, chunk_idx=idx, content=content, score=value)
            for article, idx, content, value in result.all()
            if value is not None
        ]

    async def insert_rows(self, session: AsyncSession, rows: list[dict]) -> None:
        if rows:
            await session.execute(insert(ChunkModel), rows)

    async def delete_article(self, session: AsyncSession, article: str) -> int:
        stmt = delete(ChunkModel).where(ChunkModel.article == article)
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def max_id(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.max(ChunkModel.id)))
        return int(result.scalar_one_or_none() or 0)

    async def get_counter(self, session: AsyncSession) -> int | None:
        counter = await session.get(IdCounterModel, CHUNK_COUNTER)
        return counter.value if counter else None

    async def set_counter(self, session: AsyncSession, value: int) -> None:
        """Raise the persisted high-water mark; never lowers it."""
        counter = await session.get(IdCounterModel, CHUNK_COUNTER)
        if counter is None:
            session.add(IdCounterModel(name=CHUNK_COUNTER, value=value))
        elif value > counter.value:
            counter.value = value
        await session.flush()


chunk_crud = ChunkCRUD()
