"""
Chunk store schemas.

Dependencies: pydantic
System role: Chunk and similarity-hit contracts
"""

from pydantic import BaseModel, Field

NEIGHBOR_SCORE = -1.0


class ChunkHit(BaseModel):
    """
    A chunk returned by a query.

    Attributes:
        article: Source identifier
        chunk_idx: 0-based position within the article
        content: Chunk text
        score: Cosine similarity, or -1 for positional neighbors
    """

    article: str
    chunk_idx: int
    content: str
    score: float = Field(ge=-1.0, le=1.0)

    @property
    def key(self) -> tuple[str, int]:
        return (self.article, self.chunk_idx)


class ArticleCount(BaseModel):
    """Stored article with its chunk count."""

    article: str
    count: int


class InsertResult(BaseModel):
    """Outcome of a chunk insert."""

    article: str
    inserted: int = Field(description="Chunks written by this call")
    skipped: bool = Field(default=False, description="True when the article already existed")
