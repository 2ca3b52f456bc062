"""
Adaptive context assembler.

Decides how much stored material backs an answer:

1. Refine the question to an entity name where possible.
2. Exact article name: use the whole article in order (article_specific).
3. Embed the refined query and rank candidates.
4. Any hit above the high-confidence threshold: take those (high_confidence).
5. Otherwise let the LLM arbitrate; ANSWER_DIRECT yields an empty context
   (answer_direct), RETRIEVE_MORE applies its k and threshold
   (lm_requested_retrieval). Unreachable backend or unparsable reply falls
   back to the relaxed threshold (relaxed_fallback).
6. Stitch positional neighbors around every primary hit.

Dependencies: askrag.core.chunk_store, askrag.boundary.llm
System role: Retrieval decision procedure for the ask pipeline
"""

import logging
import time

from askrag.boundary.llm.client import LLMClient
from askrag.boundary.llm.holder import LLMClientHolder
from askrag.configs.retrieval import RetrievalSettings
from askrag.core.chunk_store import ChunkStore
from askrag.core.exceptions import BackendUnavailableError, DecisionParseError
from askrag.core.retrieval.decision import analyze_question, summarize_candidates
from askrag.core.retrieval.query_refiner import refine_search_query
from askrag.models.chunk import NEIGHBOR_SCORE, ChunkHit
from askrag.models.retrieval import (
    AssembledContext,
    DebugChunk,
    DebugTrace,
    DecisionTag,
    RetrievalAction,
)

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ContextAssembler:
    """Builds the retrieved context for one question."""

    def __init__(
        self,
        store: ChunkStore,
        llm: LLMClientHolder,
        settings: RetrievalSettings,
    ) -> None:
        """
        Initialize assembler.

        Args:
            store: Chunk store to query
            llm: Holder of the active embedding/completion client
            settings: Thresholds, candidate limits and separator
        """
        self.store = store
        self.llm = llm
        self.settings = settings

    async def prepare(
        self,
        question: str,
        k: int | None = None,
        client: LLMClient | None = None,
    ) -> AssembledContext:
        """
        Assemble context for a question.

        Args:
            question: Raw user question
            k: Primary hit budget (defaults to the configured k)
            client: Client snapshot of the calling request (defaults to the active one)

        Returns:
            AssembledContext: Context text and debug trace

        Raises:
            BackendUnavailableError: If the query cannot be embedded
            ChunkStoreError: If a store query fails
        """
        k = k or self.settings.k
        query = refine_search_query(question)
        trace = DebugTrace(query=query, used_k=k, total_chunks=await self.store.count_all())
        logger.info(f"{__name__}:prepare - START k={k}", extra={"query": query})

        # Step 1: exact article shortcut
        article_hits = await self.store.article_chunks(query)
        if article_hits:
            trace.decision = DecisionTag.ARTICLE_SPECIFIC
            trace.used_k = len(article_hits)
            return self._render(article_hits, trace, stitched=article_hits)

        # Step 2: vector search
        client = client or self.llm.get()
        started = time.perf_counter()
        query_vector = await client.embed_one(query)
        trace.embed_ms = _elapsed_ms(started)

        started = time.perf_counter()
        candidates = await self.store.similarity_search(query_vector, self.settings.candidate_limit(k))
        trace.search_ms = _elapsed_ms(started)

        # Step 3: pick primary hits
        confident = [hit for hit in candidates if hit.score > self.settings.high_confidence_threshold]
        if confident:
            trace.decision = DecisionTag.HIGH_CONFIDENCE
            primaries = confident[:k]
        else:
            primaries = await self._arbitrate(client, question, candidates, k, trace)

        if trace.decision == DecisionTag.ANSWER_DIRECT:
            trace.used_k = 0
            logger.info(f"{__name__}:prepare - END decision=answer_direct")
            return AssembledContext(text="", trace=trace)

        # Step 4: neighbor stitching
        stitched = await self._stitch_neighbors(primaries)
        logger.info(
            f"{__name__}:prepare - END decision={trace.decision.value}",
            extra={"primary": len(primaries), "parts": len(stitched)},
        )
        return self._render(primaries, trace, stitched=stitched)

    async def _arbitrate(
        self,
        client,
        question: str,
        candidates: list[ChunkHit],
        k: int,
        trace: DebugTrace,
    ) -> list[ChunkHit]:
        """Primary hits chosen by LLM arbitration or the relaxed fallback."""
        summary = summarize_candidates(candidates, self.settings.summary_top_n)
        try:
            decision = await analyze_question(client, question, summary)
        except (BackendUnavailableError, DecisionParseError) as e:
            logger.warning(f"{__name__}:_arbitrate - Falling back to relaxed threshold: {e}")
            trace.decision = DecisionTag.RELAXED_FALLBACK
            return [hit for hit in candidates if hit.score >= self.settings.relaxed_threshold][:k]

        if decision.action == RetrievalAction.ANSWER_DIRECT:
            trace.decision = DecisionTag.ANSWER_DIRECT
            return []

        trace.decision = DecisionTag.LM_REQUESTED_RETRIEVAL
        desired_k = decision.k if decision.k > 0 else k
        threshold = decision.threshold if decision.threshold > 0 else self.settings.relaxed_threshold
        # The proposed query is recorded, the original vector is reused
        trace.arbitration_query = decision.query or None
        trace.used_k = desired_k
        selected = [hit for hit in candidates if hit.score >= threshold][:desired_k]
        return selected or candidates[:desired_k]

    async def _stitch_neighbors(self, primaries: list[ChunkHit]) -> list[ChunkHit]:
        """
        Primary hits interleaved with their positional neighbors.

        Each primary is preceded by chunk i-1 and followed by chunk i+1 of
        the same article unless that position is already selected anywhere
        in the assembly.
        """
        selected = {hit.key for hit in primaries}
        parts: list[ChunkHit] = []
        for hit in primaries:
            previous = await self._neighbor(hit.article, hit.chunk_idx - 1, selected)
            if previous:
                parts.append(previous)
            parts.append(hit)
            following = await self._neighbor(hit.article, hit.chunk_idx + 1, selected)
            if following:
                parts.append(following)
        return parts

    async def _neighbor(self, article: str, chunk_idx: int, selected: set) -> ChunkHit | None:
        key = (article, chunk_idx)
        if chunk_idx < 0 or key in selected:
            return None
        content = await self.store.fetch_by_position(article, chunk_idx)
        if content is None:
            return None
        selected.add(key)
        return ChunkHit(article=article, chunk_idx=chunk_idx, content=content, score=NEIGHBOR_SCORE)

    def _render(
        self,
        primaries: list[ChunkHit],
        trace: DebugTrace,
        stitched: list[ChunkHit],
    ) -> AssembledContext:
        primary_keys = {hit.key for hit in primaries}
        trace.chunks = [
            DebugChunk(
                article=hit.article,
                chunk_idx=hit.chunk_idx,
                score=hit.score,
                content=hit.content,
                is_neighbor=hit.key not in primary_keys,
            )
            for hit in stitched
        ]
        text = self.settings.context_separator.join(hit.content for hit in stitched)
        return AssembledContext(text=text, trace=trace)
