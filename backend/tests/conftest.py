"""
Angle Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   A throwaway SQLite file (aiosqlite) stands in for the hosted
       PostgreSQL database and is seeded with a handful of episodes.

Fixture Hierarchy (all function-scoped):
    ├── session_factory: async_sessionmaker over a seeded SQLite file
    ├── db_session:      one session from that factory
    ├── mock_db_session: AsyncMock session for failure paths
    ├── shell_file:      temporary SPA index.html with the full meta set
    └── test_client:     HTTPX AsyncClient bound to the app, DB overridden

Seed data (created_at ascending):
    ep-3   "The Quiet Revolution"  no category          completed  2024-02-01
    ep-1   "Why Sleep Matters"     Health               completed  2024-03-01
    ep-2   "Markets in Motion"     Business & Economy   completed  2024-03-05
    b      "Unfinished Cut"        Health               draft      2024-03-10
"""

import os
import tempfile

# Override settings for testing BEFORE any angle imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="angle_test_"), "engine.db"
)
os.environ["ENVIRONMENT"] = "production"
os.environ["EPISODE_CACHE_ENABLED"] = "false"
os.environ["SITEMAP_INCLUDE_CATEGORIES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from angle.database import Base, get_db_session, get_session_factory
from angle.models.episode import Episode
from angle.services.page_renderer import ShellLoader, page_renderer

SHELL_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <title>Angle</title>
    <meta name="description" content="Stories worth listening." />
    <meta property="og:type" content="website" />
    <meta property="og:url" content="https://angle.app/" />
    <meta property="og:title" content="Angle" />
    <meta property="og:description" content="Stories worth listening." />
    <meta property="og:image" content="/og-default.png" />
    <meta property="og:image:width" content="1200" />
    <meta property="og:image:height" content="630" />
    <meta name="twitter:card" content="summary_large_image" />
    <meta name="twitter:url" content="https://angle.app/" />
    <meta name="twitter:title" content="Angle" />
    <meta name="twitter:description" content="Stories worth listening." />
    <meta name="twitter:image" content="/og-default.png" />
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/assets/index.js"></script>
  </body>
</html>
"""


def make_episodes():
    """Fresh ORM rows for the seed data described in the module docstring."""
    return [
        Episode(
            id="ep-3",
            title="The Quiet Revolution",
            excerpt="How small habits compound.",
            description=None,
            cover_url=None,
            status="completed",
            category=None,
            created_at=datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc),
        ),
        Episode(
            id="ep-1",
            title="Why Sleep Matters",
            excerpt="A short look at sleep.",
            description="A long-form look at why sleep shapes memory, mood & health.",
            cover_url="/images/sleep.jpg",
            audio_url="https://cdn.angle.app/audio/ep-1.mp3",
            duration=1830,
            episode_number=12,
            host="Dana Reyes",
            tags=["sleep", "science"],
            status="completed",
            category="Health",
            created_at=datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc),
        ),
        Episode(
            id="ep-2",
            title="Markets in Motion",
            excerpt="What moved the markets this week.",
            description=None,
            cover_url=None,
            status="completed",
            category="Business & Economy",
            created_at=datetime(2024, 3, 5, 8, 15, tzinfo=timezone.utc),
        ),
        Episode(
            id="b",
            title="Unfinished Cut",
            excerpt="Not ready yet.",
            status="draft",
            category="Health",
            created_at=datetime(2024, 3, 10, 10, 0, tzinfo=timezone.utc),
        ),
    ]


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory over a seeded SQLite file.

    A file (not :memory:) so that concurrent sessions, as used by the
    sitemap, each get their own connection to the same data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'angle.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(make_episodes())
        await session.commit()

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    An AsyncMock session whose execute() can be made to fail.

    Usage:
        mock_db_session.execute.side_effect = RuntimeError("connection reset")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Shell & HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def shell_html():
    return SHELL_HTML


@pytest.fixture
def shell_file(tmp_path):
    path = tmp_path / "public" / "index.html"
    path.parent.mkdir()
    path.write_text(SHELL_HTML, encoding="utf-8")
    return path


@pytest_asyncio.fixture
async def test_client(session_factory, shell_file, monkeypatch):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The request-scoped session and the sitemap's session factory both point
    at the seeded SQLite file; the page renderer reads the temporary shell.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
    """
    from angle.main import app

    async def override_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    monkeypatch.setattr(page_renderer, "shell_loader", ShellLoader([shell_file]))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
