"""
Retrieval decision and debug trace schemas.

Dependencies: pydantic
System role: Adaptive context assembler contracts
"""

from enum import Enum

from pydantic import BaseModel, Field


class RetrievalAction(str, Enum):
    """Actions the arbitration step can request."""

    ANSWER_DIRECT = "ANSWER_DIRECT"
    RETRIEVE_MORE = "RETRIEVE_MORE"


class DecisionTag(str, Enum):
    """Branch of the retrieval procedure that produced the context."""

    ARTICLE_SPECIFIC = "article_specific"
    HIGH_CONFIDENCE = "high_confidence"
    LM_REQUESTED_RETRIEVAL = "lm_requested_retrieval"
    ANSWER_DIRECT = "answer_direct"
    RELAXED_FALLBACK = "relaxed_fallback"


class RetrievalDecision(BaseModel):
    """Parsed arbitration reply."""

    action: RetrievalAction
    k: int = 0
    threshold: float = 0.0
    query: str = ""


class DebugChunk(BaseModel):
    """A chunk that ended up in the assembled context."""

    article: str
    chunk_idx: int
    score: float
    content: str
    is_neighbor: bool = False


class DebugTrace(BaseModel):
    """Diagnostic projection of one retrieval run."""

    query: str = Field(description="Refined query used for the lookup")
    decision: DecisionTag | None = None
    embed_ms: int = 0
    search_ms: int = 0
    total_chunks: int = 0
    used_k: int = 0
    chunks: list[DebugChunk] = Field(default_factory=list)
    arbitration_query: str | None = Field(
        default=None, description="Refined query proposed by arbitration, if any"
    )


class AssembledContext(BaseModel):
    """Context text plus the trace explaining how it was built."""

    text: str
    trace: DebugTrace
