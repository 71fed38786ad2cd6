"""
Deskmate Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

One session per request means one transaction per request: a handler either
applies all of its writes or none of them.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600
    SQLite URLs skip the pool options and use a thread-safe connection.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from deskmate.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Build create_async_engine keyword arguments for a database URL.

    In-memory SQLite gets a StaticPool so every session sees the same
    database; file SQLite just needs cross-thread access.
    """
    if database_url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine configured for the given URL."""
    return create_async_engine(
        database_url,
        echo=settings.log_level == "DEBUG",
        **engine_options(database_url),
    )


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the app, create_tables() and Alembic.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/get-all-notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables() -> None:
    """
    What:  Creates any missing tables for the registered models.
    When:  Application startup, if settings.auto_create_tables is enabled.
    """
    # Register models on Base.metadata before create_all
    from deskmate.models import account, resource  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
