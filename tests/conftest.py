"""Shared fakes for asyncpg pools/connections and sample movies."""

import uuid
from typing import Callable, Dict, Optional
from unittest.mock import AsyncMock, create_autospec

import pytest

from moviecatalog.core.db import ConnectionProvider
from moviecatalog.core.models import Movie
from moviecatalog.core.store import MovieStore


class FakeTransaction:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn

    async def __aenter__(self):
        self.conn.events.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.conn.events.append("rollback" if exc_type else "commit")
        return False


class FakeConnection:
    """Stands in for asyncpg.Connection; `events` records transaction boundaries."""

    def __init__(self, statuses: Optional[Dict[str, str]] = None):
        self.events: list[str] = []
        self.statuses = statuses or {}
        self.execute = AsyncMock(side_effect=self._execute)
        self.fetchrow = AsyncMock(return_value=None)
        self.fetch = AsyncMock(return_value=[])
        self.fetchval = AsyncMock(return_value=None)

    async def _execute(self, sql: str, *args):
        for prefix, status in self.statuses.items():
            if sql.strip().startswith(prefix):
                return status
        return "SELECT 1"

    def transaction(self):
        return FakeTransaction(self)

    def executed(self) -> list[str]:
        """First line of every executed statement, in order."""
        return [c.args[0].strip().splitlines()[0] for c in self.execute.await_args_list]


class FakeAcquire:
    def __init__(self, pool: "FakePool"):
        self.pool = pool

    async def __aenter__(self):
        if self.pool.acquire_error is not None:
            raise self.pool.acquire_error
        self.pool.acquired += 1
        return self.pool.conn

    async def __aexit__(self, exc_type, exc, tb):
        self.pool.released += 1
        return False


class FakePool:
    def __init__(self, conn: FakeConnection):
        self.conn = conn
        self.acquired = 0
        self.released = 0
        self.acquire_error: Optional[BaseException] = None
        self.acquire_timeouts: list = []

    def acquire(self, timeout=None):
        self.acquire_timeouts.append(timeout)
        return FakeAcquire(self)


def pg_error(cls, message: str = "boom", **attrs):
    """Build an asyncpg server error with the given diagnostic fields."""
    exc = cls(message)
    for name, value in attrs.items():
        setattr(exc, name, value)
    return exc


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection(
        statuses={
            "INSERT INTO movies": "INSERT 0 1",
            "INSERT INTO genres": "INSERT 0 2",
            "UPDATE movies": "UPDATE 1",
            "DELETE FROM genres": "DELETE 2",
            "DELETE FROM movies": "DELETE 1",
        }
    )


@pytest.fixture
def pool(conn) -> FakePool:
    return FakePool(conn)


@pytest.fixture
def provider(pool) -> ConnectionProvider:
    return ConnectionProvider(pool=pool, acquire_timeout=1.5)


@pytest.fixture
def store(provider) -> MovieStore:
    return MovieStore(provider)


@pytest.fixture
def mock_store():
    return create_autospec(MovieStore, instance=True)


@pytest.fixture
def make_movie() -> Callable[..., Movie]:
    def _make(**overrides) -> Movie:
        fields = dict(
            id=uuid.uuid4(),
            slug="nick-the-greek-2023",
            title="Nick the Greek",
            year_of_release=2023,
            genres=["Action", "Drama"],
        )
        fields.update(overrides)
        return Movie(**fields)

    return _make
