"""
Knowledge service.

Plain-text ingestion, direct similarity search, source listing/deletion and
ingestion of tool results under synthetic article names.

Dependencies: askrag.core.chunk_store, askrag.core.chunker
System role: Knowledge base operations behind the API and the ask pipeline
"""

import logging
import time

from askrag.boundary.llm.client import LLMClient
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.configs.retrieval import RetrievalSettings
from askrag.core.chunk_store import ChunkStore
from askrag.core.chunker import chunk_text
from askrag.core.exceptions import ValidationError
from askrag.models.chunk import NEIGHBOR_SCORE, ChunkHit, InsertResult
from askrag.models.knowledge import (
    AddTextResponse,
    DeleteSourceResponse,
    SearchResponse,
    StatsResponse,
)
from askrag.models.tools import ToolOutcome

logger = logging.getLogger(__name__)


def tool_article_name(outcome: ToolOutcome, request_id: str) -> str:
    """Synthetic article for a tool result; unique per invocation."""
    return f"{outcome.source}#{request_id}"


class KnowledgeService:
    """Operations on the stored knowledge base."""

    def __init__(
        self,
        store: ChunkStore,
        llm: LLMClientHolder,
        runtime: RuntimeSettingsStore,
        settings: RetrievalSettings,
    ) -> None:
        self.store = store
        self.llm = llm
        self.runtime = runtime
        self.settings = settings

    async def ingest(
        self,
        article: str,
        text: str,
        client: LLMClient | None = None,
        chunk_size: int | None = None,
    ) -> InsertResult:
        """Chunk text (current chunk size by default) and store it under article."""
        chunks = chunk_text(text, chunk_size or self.runtime.get().chunk_size)
        if not chunks:
            raise ValidationError("text contains no content", field="text")
        return await self.store.insert(article, chunks, client)

    async def add_text(self, text: str, title: str | None = None) -> AddTextResponse:
        title = (title or "").strip() or f"manual-{int(time.time())}"
        result = await self.ingest(title, text)
        return AddTextResponse(
            title=title,
            chars=len(text),
            chunks=result.inserted,
            skipped=result.skipped,
            total=await self.store.count_all(),
        )

    async def ingest_tool_result(
        self,
        outcome: ToolOutcome,
        request_id: str,
        client: LLMClient | None = None,
        chunk_size: int | None = None,
    ) -> tuple[str, int]:
        """
        Store a successful tool output.

        The asking request passes its own client and chunk size so the
        ingestion uses the same settings snapshot as the rest of the answer.

        Returns:
            tuple[str, int]: (article name, chunks written)
        """
        article = tool_article_name(outcome, request_id)
        result = await self.ingest(article, outcome.output or "", client, chunk_size)
        logger.info(
            f"{__name__}:ingest_tool_result - Stored tool output",
            extra={"tool": outcome.tool, "article": article, "chunks": result.inserted},
        )
        return article, result.inserted

    async def search(self, query: str, k: int | None = None) -> SearchResponse:
        """
        Direct similarity search with neighbor stitching.

        Hits above the relaxed threshold count as primary, up to k.
        """
        k = k or self.runtime.get().k
        vector = await self.llm.get().embed_one(query)
        candidates = await self.store.similarity_search(vector, self.settings.candidate_limit(k))
        primaries = [hit for hit in candidates if hit.score > self.settings.relaxed_threshold][:k]

        selected = {hit.key for hit in primaries}
        results: list[ChunkHit] = []
        for hit in primaries:
            results.append(hit)
            for idx in (hit.chunk_idx - 1, hit.chunk_idx + 1):
                if (hit.article, idx) in selected:
                    continue
                content = await self.store.fetch_by_position(hit.article, idx)
                if content is not None:
                    selected.add((hit.article, idx))
                    results.append(
                        ChunkHit(article=hit.article, chunk_idx=idx, content=content, score=NEIGHBOR_SCORE)
                    )
        return SearchResponse(query=query, results=results)

    async def delete_source(self, article: str) -> DeleteSourceResponse:
        deleted = await self.store.delete_article(article)
        return DeleteSourceResponse(article=article, deleted=deleted, total=await self.store.count_all())

    async def stats(self) -> StatsResponse:
        runtime = self.runtime.get()
        return StatsResponse(
            total_chunks=await self.store.count_all(),
            articles=len(await self.store.list_articles()),
            k=runtime.k,
            chunk_size=runtime.chunk_size,
            chat_model=runtime.chat_model,
            embed_model=runtime.embed_model,
        )
