"""
Knowledge base schemas.

Dependencies: pydantic
System role: Ingestion, search and source management contracts
"""

from pydantic import BaseModel, Field

from askrag.models.chunk import ArticleCount, ChunkHit


class AddTextRequest(BaseModel):
    """Request schema for plain-text ingestion."""

    text: str = Field(min_length=1, description="Text to chunk and store")
    title: str | None = Field(default=None, description="Article name (generated if omitted)")


class AddTextResponse(BaseModel):
    """Response schema for plain-text ingestion."""

    title: str
    chars: int
    chunks: int
    skipped: bool = False
    total: int


class SearchRequest(BaseModel):
    """Request schema for direct similarity search."""

    query: str = Field(min_length=1)
    k: int | None = Field(default=None, ge=1, le=100)


class SearchResponse(BaseModel):
    """Primary hits with their stitched neighbors."""

    query: str
    results: list[ChunkHit]


class DeleteSourceRequest(BaseModel):
    """Request schema for removing an article."""

    article: str = Field(min_length=1)


class DeleteSourceResponse(BaseModel):
    article: str
    deleted: int
    total: int


class SourcesResponse(BaseModel):
    sources: list[ArticleCount]


class StatsResponse(BaseModel):
    """Knowledge base statistics."""

    total_chunks: int
    articles: int
    k: int
    chunk_size: int
    chat_model: str
    embed_model: str
