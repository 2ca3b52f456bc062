"""
Chunk ORM models.

Chunks carry application-allocated integer ids. The id_counters table keeps
the allocation high-water mark so ids are never reissued after deletion.

Dependencies: sqlalchemy, askrag.boundary.db.base
System role: Chunk and embedding persistence
"""

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from askrag.boundary.db.base import Base


class ChunkModel(Base):
    """
    Stored text chunk with its embedding.

    Attributes:
        id: Globally unique, never reused chunk id
        article: Source identifier
        chunk_idx: 0-based position within the article
        content: Chunk text
        embedding: JSON-encoded float array
    """

    __tablename__ = "chunks"
    __table_args__ = (
        UniqueConstraint("article", "chunk_idx", name="uq_chunks_article_idx"),
        Index("ix_chunks_article", "article"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    article: Mapped[str] = mapped_column(String(512), nullable=False)
    chunk_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[str] = mapped_column(Text, nullable=False)


class IdCounterModel(Base):
    """Persisted allocation counter keyed by name."""

    __tablename__ = "id_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
