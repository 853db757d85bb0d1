# moviecatalog/core/store.py
"""SQL-level reads and writes for the movie aggregate (movies + genres rows)."""

import asyncpg
import logging
import uuid
from typing import Iterable, List, Optional

from moviecatalog.core.control import run_with_deadline
from moviecatalog.core.db import ConnectionProvider
from moviecatalog.core.models import Movie, unique_genres

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Statements
# ─────────────────────────────────────────────────────────────────────────────
INSERT_MOVIE = """
INSERT INTO movies (id, slug, title, yearofrelease)
VALUES ($1, $2, $3, $4)
"""

INSERT_GENRES = """
INSERT INTO genres (movieid, name)
SELECT $1, g.name FROM unnest($2::text[]) AS g(name)
"""

SELECT_MOVIE_BY_ID = """
SELECT id, slug, title, yearofrelease
  FROM movies
 WHERE id = $1
"""

SELECT_MOVIE_BY_SLUG = """
SELECT id, slug, title, yearofrelease
  FROM movies
 WHERE slug = $1
"""

SELECT_GENRES = """
SELECT name
  FROM genres
 WHERE movieid = $1
 ORDER BY name
"""

SELECT_ALL_MOVIES = """
SELECT m.id, m.slug, m.title, m.yearofrelease,
       COALESCE(
         array_agg(g.name ORDER BY g.name) FILTER (WHERE g.name IS NOT NULL),
         '{}'
       ) AS genres
  FROM movies m
  LEFT JOIN genres g ON g.movieid = m.id
 GROUP BY m.id
 ORDER BY m.id
"""

LOCK_MOVIE = "SELECT 1 FROM movies WHERE id = $1 FOR UPDATE"

UPDATE_MOVIE = """
UPDATE movies
   SET slug = $2,
       title = $3,
       yearofrelease = $4
 WHERE id = $1
"""

DELETE_GENRES = "DELETE FROM genres WHERE movieid = $1"

DELETE_MOVIE = "DELETE FROM movies WHERE id = $1"

MOVIE_EXISTS = "SELECT EXISTS(SELECT 1 FROM movies WHERE id = $1)"


def _affected(status: str) -> int:
    """Row count from a command tag such as 'INSERT 0 1' or 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


def _row_to_movie(row: asyncpg.Record, genres: Iterable[str]) -> Movie:
    return Movie(
        id=row["id"],
        slug=row["slug"],
        title=row["title"],
        year_of_release=row["yearofrelease"],
        genres=list(genres),
    )


class _Rollback(Exception):
    """Raised inside a transaction to abort it without surfacing an error."""


class MovieStore:
    """
    Sole writer of catalog state.

    create/update/delete_by_id each run in exactly one transaction that
    commits only after every statement succeeded. Every call takes an
    optional `timeout` (seconds); when it elapses the work is cancelled,
    the transaction rolls back and OperationCancelled is raised.
    """

    def __init__(self, provider: ConnectionProvider):
        self._provider = provider

    # ─── writes ──────────────────────────────────────────────────────────────
    async def create(self, movie: Movie, *, timeout: Optional[float] = None) -> bool:
        return await run_with_deadline(self._create(movie), timeout)

    async def _create(self, movie: Movie) -> bool:
        async with self._provider.connection() as conn:
            async with conn.transaction():
                status = await conn.execute(
                    INSERT_MOVIE, movie.id, movie.slug, movie.title, movie.year_of_release
                )
                if _affected(status) == 0:
                    return False
                await self._insert_genres(conn, movie.id, movie.genres)
        logger.info("Created movie %s (%s)", movie.id, movie.slug)
        return True

    async def update(self, movie: Movie, *, timeout: Optional[float] = None) -> bool:
        return await run_with_deadline(self._update(movie), timeout)

    async def _update(self, movie: Movie) -> bool:
        async with self._provider.connection() as conn:
            try:
                async with conn.transaction():
                    # Row lock: no genre insert for a missing movie, and
                    # concurrent updates of one movie queue up here.
                    if await conn.fetchval(LOCK_MOVIE, movie.id) is None:
                        raise _Rollback
                    await conn.execute(DELETE_GENRES, movie.id)
                    await self._insert_genres(conn, movie.id, movie.genres)
                    status = await conn.execute(
                        UPDATE_MOVIE, movie.id, movie.slug, movie.title, movie.year_of_release
                    )
                    if _affected(status) == 0:
                        raise _Rollback
            except _Rollback:
                logger.info("Update skipped, no movie %s", movie.id)
                return False
        logger.info("Updated movie %s (%s)", movie.id, movie.slug)
        return True

    async def delete_by_id(self, movie_id: uuid.UUID, *, timeout: Optional[float] = None) -> bool:
        return await run_with_deadline(self._delete_by_id(movie_id), timeout)

    async def _delete_by_id(self, movie_id: uuid.UUID) -> bool:
        async with self._provider.connection() as conn:
            async with conn.transaction():
                await conn.execute(DELETE_GENRES, movie_id)
                status = await conn.execute(DELETE_MOVIE, movie_id)
        deleted = _affected(status) > 0
        if deleted:
            logger.info("Deleted movie %s", movie_id)
        return deleted

    async def _insert_genres(self, conn: asyncpg.Connection, movie_id: uuid.UUID, genres: Iterable[str]) -> None:
        names = unique_genres(genres)
        if names:
            await conn.execute(INSERT_GENRES, movie_id, names)

    # ─── reads ───────────────────────────────────────────────────────────────
    async def get_by_id(self, movie_id: uuid.UUID, *, timeout: Optional[float] = None) -> Optional[Movie]:
        return await run_with_deadline(self._get_one(SELECT_MOVIE_BY_ID, movie_id), timeout)

    async def get_by_slug(self, slug: str, *, timeout: Optional[float] = None) -> Optional[Movie]:
        return await run_with_deadline(self._get_one(SELECT_MOVIE_BY_SLUG, slug), timeout)

    async def _get_one(self, sql: str, key) -> Optional[Movie]:
        async with self._provider.connection() as conn:
            row = await conn.fetchrow(sql, key)
            if row is None:
                return None
            genres = await conn.fetch(SELECT_GENRES, row["id"])
        return _row_to_movie(row, (g["name"] for g in genres))

    async def get_all(self, *, timeout: Optional[float] = None) -> List[Movie]:
        return await run_with_deadline(self._get_all(), timeout)

    async def _get_all(self) -> List[Movie]:
        async with self._provider.connection() as conn:
            rows = await conn.fetch(SELECT_ALL_MOVIES)
        return [_row_to_movie(r, r["genres"]) for r in rows]

    async def exists_by_id(self, movie_id: uuid.UUID, *, timeout: Optional[float] = None) -> bool:
        return await run_with_deadline(self._exists_by_id(movie_id), timeout)

    async def _exists_by_id(self, movie_id: uuid.UUID) -> bool:
        async with self._provider.connection() as conn:
            return bool(await conn.fetchval(MOVIE_EXISTS, movie_id))
