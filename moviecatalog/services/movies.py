# moviecatalog/services/movies.py

import uuid
from typing import List, Optional

from moviecatalog.core.control import run_with_deadline
from moviecatalog.core.errors import ConstraintViolation, FieldError, MovieValidationError
from moviecatalog.core.logger import setup_logger
from moviecatalog.core.models import Movie
from moviecatalog.core.schema import SLUG_INDEX
from moviecatalog.core.store import MovieStore
from moviecatalog.services.validation import SLUG_TAKEN, MovieValidator

logger = setup_logger(__name__)


def _slug_conflict() -> MovieValidationError:
    return MovieValidationError([FieldError("slug", SLUG_TAKEN)])


class MovieCatalogService:
    """
    Entry point for the HTTP layer: validate → (existence check) → store.

    Not-found outcomes come back as None/False. A duplicate slug that slipped
    past validation and was stopped by the unique index is reported as a
    validation failure on `slug`; other constraint violations propagate as-is.
    For create and update the timeout bounds the whole sequence of calls.
    """

    def __init__(self, store: MovieStore, validator: MovieValidator):
        self._store = store
        self._validator = validator

    async def create(self, movie: Movie, *, timeout: Optional[float] = None) -> bool:
        return await run_with_deadline(self._create(movie), timeout)

    async def _create(self, movie: Movie) -> bool:
        await self._validator.validate(movie, timeout=None)
        try:
            return await self._store.create(movie, timeout=None)
        except ConstraintViolation as exc:
            if exc.constraint == SLUG_INDEX:
                raise _slug_conflict() from exc
            raise

    async def get_by_id(self, movie_id: uuid.UUID, *, timeout: Optional[float] = None) -> Optional[Movie]:
        return await self._store.get_by_id(movie_id, timeout=timeout)

    async def get_by_slug(self, slug: str, *, timeout: Optional[float] = None) -> Optional[Movie]:
        return await self._store.get_by_slug(slug, timeout=timeout)

    async def get_by_id_or_slug(self, id_or_slug: str, *, timeout: Optional[float] = None) -> Optional[Movie]:
        try:
            movie_id = uuid.UUID(id_or_slug)
        except ValueError:
            return await self.get_by_slug(id_or_slug, timeout=timeout)
        return await self.get_by_id(movie_id, timeout=timeout)

    async def get_all(self, *, timeout: Optional[float] = None) -> List[Movie]:
        return await self._store.get_all(timeout=timeout)

    async def update(self, movie: Movie, *, timeout: Optional[float] = None) -> Optional[Movie]:
        return await run_with_deadline(self._update(movie), timeout)

    async def _update(self, movie: Movie) -> Optional[Movie]:
        await self._validator.validate(movie, timeout=None)

        if not await self._store.exists_by_id(movie.id, timeout=None):
            logger.info("Update of unknown movie %s", movie.id)
            return None

        try:
            updated = await self._store.update(movie, timeout=None)
        except ConstraintViolation as exc:
            if exc.constraint == SLUG_INDEX:
                raise _slug_conflict() from exc
            raise
        if not updated:
            # Deleted between the existence check and the write
            return None
        return await self._store.get_by_id(movie.id, timeout=None)

    async def delete_by_id(self, movie_id: uuid.UUID, *, timeout: Optional[float] = None) -> bool:
        return await self._store.delete_by_id(movie_id, timeout=timeout)
