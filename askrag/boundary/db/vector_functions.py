"""
SQL vector functions for SQLite.

Registers vec_cosine_similarity(a, b) on every new DBAPI connection so that
ranking runs inside a single SQL statement. Vectors are stored as JSON arrays
and decoded into numpy arrays for the arithmetic.

Dependencies: sqlalchemy, numpy
System role: Similarity operator for the chunk store
"""

import json
from functools import lru_cache

import numpy as np
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

COSINE_FUNCTION = "vec_cosine_similarity"


def encode_vector(vector: list[float]) -> str:
    return json.dumps([float(v) for v in vector])


def _decode(text: str) -> np.ndarray:
    vector = np.asarray(json.loads(text), dtype=np.float32)
    if vector.ndim != 1:
        raise ValueError("vector must be 1D")
    return vector


@lru_cache(maxsize=32)
def _decode_cached(text: str) -> np.ndarray:
    return _decode(text)


def cosine_similarity(stored: str | None, query: str | None) -> float | None:
    """
    Cosine similarity of two JSON-encoded vectors.

    Returns None for missing, malformed, zero or mismatched vectors so the
    row sorts last instead of failing the whole query.
    """
    if not stored or not query:
        return None
    try:
        a = _decode(stored)
        # The query operand repeats for every row of a ranking statement
        b = _decode_cached(query)
    except (ValueError, TypeError):
        return None
    if a.shape != b.shape:
        return None
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0 or norm_b == 0:
        return None
    score = float(np.dot(a, b)) / (norm_a * norm_b)
    return max(-1.0, min(1.0, score))


def register_vector_functions(engine: AsyncEngine) -> None:
    """Attach the similarity function to each connection the engine opens."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.create_function(COSINE_FUNCTION, 2, cosine_similarity)
