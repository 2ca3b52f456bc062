"""
Database connection management.

Engine construction (SQLite gets the vector SQL functions), session factory
and table creation. The API owns its engine through ServiceCache.

Dependencies: sqlalchemy, aiosqlite
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from askrag.boundary.db.base import Base
from askrag.boundary.db.vector_functions import register_vector_functions


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine with the vector functions registered.

    In-memory SQLite URLs use a StaticPool so every session shares one
    connection (and therefore one database).

    Args:
        url: SQLAlchemy async URL
        echo: Echo SQL statements to logs

    Returns:
        AsyncEngine: Configured engine
    """
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)
    if url.startswith("sqlite"):
        register_vector_functions(engine)
    return engine


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    Args:
        engine: Engine to bind

    Returns:
        async_sessionmaker: Async session factory configured for manual transaction control

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all registered tables if they do not exist."""
    # Import models so they register on Base.metadata
    from askrag.boundary.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

