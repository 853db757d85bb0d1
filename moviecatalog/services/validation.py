# moviecatalog/services/validation.py

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from moviecatalog.core.errors import FieldError, MovieValidationError
from moviecatalog.core.logger import setup_logger
from moviecatalog.core.models import Movie
from moviecatalog.core.store import MovieStore

logger = setup_logger(__name__)

SLUG_TAKEN = "This movie already exists in the system."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


class MovieValidator:
    """
    Business rules checked before any write.

    Every rule is evaluated and all failures are reported together. The slug
    rule reads the store and races with concurrent writers; the unique index
    on movies.slug is what actually guarantees uniqueness.
    """

    def __init__(self, store: MovieStore, clock: Callable[[], datetime] = _utcnow):
        self._store = store
        self._clock = clock

    async def validate(self, movie: Movie, *, timeout: Optional[float] = None) -> None:
        errors = self.check_fields(movie)
        if not _blank(movie.slug):
            slug_error = await self._check_slug(movie, timeout)
            if slug_error:
                errors.append(slug_error)
        if errors:
            logger.info("Rejected movie %s: %s", movie.id, "; ".join(map(str, errors)))
            raise MovieValidationError(errors)

    def check_fields(self, movie: Movie) -> List[FieldError]:
        """Rules that need no storage access."""
        errors: List[FieldError] = []

        if movie.id is None or movie.id == uuid.UUID(int=0):
            errors.append(FieldError("id", "must not be empty"))

        if not movie.genres:
            errors.append(FieldError("genres", "must not be empty"))
        elif any(_blank(g) for g in movie.genres):
            errors.append(FieldError("genres", "genre names must not be empty"))

        if _blank(movie.title):
            errors.append(FieldError("title", "must not be empty"))

        current_year = self._clock().astimezone(timezone.utc).year
        if not isinstance(movie.year_of_release, int) or movie.year_of_release > current_year:
            errors.append(
                FieldError("year_of_release", f"must be less than or equal to {current_year}")
            )

        if _blank(movie.slug):
            errors.append(FieldError("slug", "must not be empty"))

        return errors

    async def _check_slug(self, movie: Movie, timeout: Optional[float]) -> Optional[FieldError]:
        existing = await self._store.get_by_slug(movie.slug, timeout=timeout)
        if existing is None or existing.id == movie.id:
            return None
        return FieldError("slug", SLUG_TAKEN)
