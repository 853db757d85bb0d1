# moviecatalog/core/models/movie.py
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List

from slugify import slugify


def generate_slug(title: str, year_of_release: int) -> str:
    """'The Matrix: Reloaded', 2003 -> 'the-matrix-reloaded-2003'"""
    return f"{slugify(title, lowercase=True)}-{year_of_release}"


def unique_genres(genres: Iterable[str]) -> List[str]:
    """Drop repeated genre names, keeping the first occurrence of each."""
    return list(dict.fromkeys(genres))


@dataclass
class Movie:
    id: uuid.UUID
    slug: str
    title: str
    year_of_release: int
    genres: List[str] = field(default_factory=list)

    @classmethod
    def create(cls, title: str, year_of_release: int, genres: Iterable[str]) -> "Movie":
        """New movie with a fresh id and a slug derived from title and year."""
        return cls.with_id(uuid.uuid4(), title, year_of_release, genres)

    @classmethod
    def with_id(cls, movie_id: uuid.UUID, title: str, year_of_release: int, genres: Iterable[str]) -> "Movie":
        return cls(
            id=movie_id,
            slug=generate_slug(title, year_of_release),
            title=title,
            year_of_release=year_of_release,
            genres=unique_genres(genres),
        )

    def same_as(self, other: "Movie") -> bool:
        """Equality with genres compared as sets."""
        return (
            self.id == other.id
            and self.slug == other.slug
            and self.title == other.title
            and self.year_of_release == other.year_of_release
            and set(self.genres) == set(other.genres)
        )
