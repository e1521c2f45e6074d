"""Shared test fixtures.

Tests run against an in-memory SQLite database (one shared connection per
engine) with Redis disabled, so the suite needs no external services.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

os.environ["MDT_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["MDT_REDIS_URL"] = ""
os.environ["MDT_JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["MDT_LOG_FORMAT"] = "console"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from meditrack.auth.jwt import create_access_token
from meditrack.config import get_settings
from meditrack.database import close_db, get_engine, get_session_factory, init_db
from meditrack.db.base import Base
from meditrack.dependencies import get_clock
from meditrack.main import create_app
from meditrack.sessions.clock import Clock

get_settings.cache_clear()

# Monday 2026-01-05 08:00:00 UTC
START = int(datetime(2026, 1, 5, 8, 0, 0, tzinfo=timezone.utc).timestamp())
DAY = 86_400


class FakeClock(Clock):
    """Clock whose current instant is set by the test."""

    def __init__(self, start: int = START, tz_name: str = "UTC") -> None:
        super().__init__(tz_name)
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds

    def next_day(self) -> None:
        self.advance(DAY)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables created."""
    await init_db(get_settings().database_url)
    eng = get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await close_db()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def client(engine: AsyncEngine, clock: FakeClock) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the fake clock."""
    app = create_app()
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a principal."""

    def _headers(principal: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(principal)}"}

    return _headers
