# moviecatalog/core/db.py
"""Database-access layer: connection pool and scoped connection acquisition."""

import asyncpg
import asyncio
import logging

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from moviecatalog.core.config import get_settings
from moviecatalog.core.errors import ConstraintViolation, StoreUnavailable

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None
_pool_lock = asyncio.Lock()

# Connection-level failures a caller may retry
_CONNECTIVITY_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.QueryCanceledError,
    asyncpg.exceptions.AdminShutdownError,
)

# ─────────────────────────────────────────────────────────────────────────────
# Connection Pool Access
# ─────────────────────────────────────────────────────────────────────────────
async def get_pg_pool() -> asyncpg.Pool:
    global _pool
    if _pool is None:
        async with _pool_lock:
            if _pool is None:
                settings = get_settings()
                _pool = await asyncpg.create_pool(
                    dsn=settings.postgres_dsn,
                    min_size=settings.pool_min_size,
                    max_size=settings.pool_max_size,
                    command_timeout=settings.command_timeout,
                )
                logger.info("Opened Postgres pool (max_size=%d)", settings.pool_max_size)
    return _pool

async def init_pg_pool() -> None:
    """Explicit init (optional). Usually prefer get_pg_pool()."""
    await get_pg_pool()

async def close_pg_pool() -> None:
    """Close the asyncpg connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Closed Postgres pool")

# ─────────────────────────────────────────────────────────────────────────────
# Error translation
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def translate_pg_errors() -> AsyncIterator[None]:
    """Re-raise asyncpg/socket failures as catalog errors, chained to the original."""
    try:
        yield
    except asyncpg.exceptions.IntegrityConstraintViolationError as exc:
        constraint = getattr(exc, "constraint_name", None)
        logger.warning("Constraint %s rejected write: %s", constraint, exc)
        raise ConstraintViolation(str(exc), constraint=constraint) from exc
    except _CONNECTIVITY_ERRORS as exc:
        logger.warning("Database unavailable: %r", exc)
        raise StoreUnavailable(str(exc) or exc.__class__.__name__) from exc

# ─────────────────────────────────────────────────────────────────────────────
# Scoped acquisition
# ─────────────────────────────────────────────────────────────────────────────
class ConnectionProvider:
    """
    Hands out pooled connections for exactly the duration of an `async with`.

    Uses the given pool, or the process-wide pool from get_pg_pool() when
    none is supplied. No retries: a connection that cannot be acquired within
    `acquire_timeout` seconds surfaces as StoreUnavailable.
    """

    def __init__(self, pool: Optional[asyncpg.Pool] = None, acquire_timeout: Optional[float] = None):
        self._pool = pool
        self._acquire_timeout = acquire_timeout

    @classmethod
    def from_settings(cls) -> "ConnectionProvider":
        return cls(acquire_timeout=get_settings().pool_acquire_timeout)

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool
        return await get_pg_pool()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        async with translate_pg_errors():
            pool = await self.get_pool()
            async with pool.acquire(timeout=self._acquire_timeout) as conn:
                yield conn
