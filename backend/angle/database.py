"""
Angle Backend — Database Session Management
============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependencies.
How:   Creates an async engine with connection pooling and hands out one
       read-only session per request. Nothing is ever committed.
Who:   Used by route handlers via FastAPI's dependency injection system,
       and by the sitemap route, which needs more than one session.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling:
    pool_size / max_overflow come from settings and only apply to pooled
    drivers. SQLite URLs (used by the test suite) get SQLAlchemy's defaults.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from angle.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool options for the given URL; SQLite rejects queue-pool arguments."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after the session closes
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for the ORM mappings of the externally owned tables."""
    pass


# ── Session Dependencies ──────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On error: rolls back the open read transaction
        4. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/episodes")
        async def get_episodes(db: AsyncSession = Depends(get_db_session)):
            return await episode_service.list_episodes(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """
    FastAPI dependency returning the session factory itself.

    Used where a handler opens several sessions at once (the sitemap fetches
    episodes and categories concurrently, and an AsyncSession cannot run two
    queries at the same time).
    """
    return async_session_factory


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the lifespan shutdown."""
    await engine.dispose()
