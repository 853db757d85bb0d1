# moviecatalog/core/schema.py
"""Idempotent provisioning of the movies/genres tables and the slug index."""

import asyncio
import asyncpg
import logging
from typing import Optional

from moviecatalog.core.control import run_with_deadline
from moviecatalog.core.db import ConnectionProvider
from moviecatalog.core.errors import CatalogError, SchemaError

logger = logging.getLogger(__name__)

# Arbitrary app-wide key for pg_advisory_lock; serialises concurrent initializers
SCHEMA_LOCK_KEY = 0x6D6F76696573  # "movies"

TRY_LOCK = "SELECT pg_try_advisory_lock($1)"
UNLOCK = "SELECT pg_advisory_unlock($1)"

SLUG_INDEX = "movies_slug_idx"

CREATE_MOVIES = """
CREATE TABLE IF NOT EXISTS movies (
  id             UUID     PRIMARY KEY,
  slug           TEXT     NOT NULL,
  title          TEXT     NOT NULL,
  yearofrelease  INTEGER  NOT NULL
);
"""

CREATE_GENRES = """
CREATE TABLE IF NOT EXISTS genres (
  movieid  UUID  NOT NULL REFERENCES movies(id),
  name     TEXT  NOT NULL,
  PRIMARY KEY (movieid, name)
);
"""

# Must run outside any transaction block
CREATE_SLUG_INDEX = f"""
CREATE UNIQUE INDEX CONCURRENTLY IF NOT EXISTS {SLUG_INDEX}
  ON movies
  USING BTREE(slug);
"""

DROP_SLUG_INDEX = f"DROP INDEX CONCURRENTLY IF EXISTS {SLUG_INDEX};"

SLUG_INDEX_VALID = """
SELECT i.indisvalid
  FROM pg_index i
  JOIN pg_class c ON c.oid = i.indexrelid
 WHERE c.relname = $1
"""

# Another instance won the race to create the same object
_ALREADY_EXISTS = (
    asyncpg.exceptions.DuplicateTableError,
    asyncpg.exceptions.DuplicateObjectError,
    asyncpg.exceptions.UniqueViolationError,
)


class SchemaInitializer:
    """
    Creates the catalog schema if it is missing. Safe to run on every start-up
    and from several processes at once: each step is its own statement, the
    steps are serialised across processes with a polled session advisory lock, and
    "already exists" outcomes are ignored.
    """

    def __init__(self, provider: ConnectionProvider, lock_poll_interval: float = 0.1):
        self._provider = provider
        self._lock_poll_interval = lock_poll_interval

    async def initialize(self, *, timeout: Optional[float] = None) -> None:
        try:
            await run_with_deadline(self._initialize(), timeout)
        except CatalogError as exc:
            if isinstance(exc, SchemaError):
                raise
            raise SchemaError(f"schema initialization failed: {exc}") from exc
        except asyncpg.PostgresError as exc:
            logger.exception("Schema initialization failed")
            raise SchemaError(f"schema initialization failed: {exc}") from exc

    async def _initialize(self) -> None:
        async with self._provider.connection() as conn:
            await self._acquire_lock(conn)
            try:
                await self._step(conn, "movies table", CREATE_MOVIES)
                await self._step(conn, "genres table", CREATE_GENRES)
                await self._ensure_slug_index(conn)
            finally:
                await conn.execute(UNLOCK, SCHEMA_LOCK_KEY)
        logger.info("Schema ready")

    async def _acquire_lock(self, conn: asyncpg.Connection) -> None:
        # Waiting inside pg_advisory_lock would hold a snapshot open, and a peer's
        # CREATE INDEX CONCURRENTLY waits on every open snapshot: deadlock.
        while not await conn.fetchval(TRY_LOCK, SCHEMA_LOCK_KEY):
            logger.debug("Schema lock held by another instance, retrying")
            await asyncio.sleep(self._lock_poll_interval)

    async def _step(self, conn: asyncpg.Connection, what: str, sql: str) -> None:
        try:
            await conn.execute(sql)
        except _ALREADY_EXISTS as exc:
            logger.info("%s already provisioned by another instance (%s)", what, exc.__class__.__name__)

    async def _ensure_slug_index(self, conn: asyncpg.Connection) -> None:
        await self._step(conn, "slug index", CREATE_SLUG_INDEX)
        valid = await conn.fetchval(SLUG_INDEX_VALID, SLUG_INDEX)
        if valid is False:
            # Left behind by an interrupted concurrent build
            logger.warning("Rebuilding invalid index %s", SLUG_INDEX)
            await conn.execute(DROP_SLUG_INDEX)
            await self._step(conn, "slug index", CREATE_SLUG_INDEX)
