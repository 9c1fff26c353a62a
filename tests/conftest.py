"""Shared fixtures for the Studio Hub test-suite.

Repository and service tests run against an in-memory SQLite database through
aiosqlite. Every test gets a fresh schema, an explicit ``TTLCache`` driven by a
manual clock, and a recorder of the SQL statements sent to the database.
"""

from __future__ import annotations

import os

# The application modules build their engine at import time; point them at
# SQLite before anything under test is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from typing import AsyncIterator, List

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cache import TTLCache
from storage.database import Base
from storage.models import User


class ManualClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> TTLCache:
    return TTLCache(default_ttl=300, clock=clock)


@pytest.fixture
def statements(engine: AsyncEngine) -> List[str]:
    """Collect every SQL statement executed on ``engine`` while the test runs."""

    recorded: List[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        recorded.append(" ".join(statement.split()))

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield recorded
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def users(session: AsyncSession) -> List[User]:
    seeded = [
        User(id="user-1", username="alice", full_name="Alice Doe", avatar_url="https://img/alice.png"),
        User(id="user-2", username="bob", full_name="Bob Roe"),
        User(id="user-3", username="carol"),
    ]
    session.add_all(seeded)
    await session.flush()
    return seeded
