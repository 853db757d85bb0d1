# moviecatalog/api/schemas.py

import uuid
from pydantic import BaseModel, Field
from typing import List, Optional

from moviecatalog.core.models import Movie

class CreateMovieRequest(BaseModel):
    title:           str
    year_of_release: int = Field(alias="yearOfRelease")
    genres:          List[str]

    model_config = {"populate_by_name": True}

class UpdateMovieRequest(CreateMovieRequest):
    pass

class MovieResponse(BaseModel):
    id:              uuid.UUID
    slug:            str
    title:           str
    year_of_release: int = Field(serialization_alias="yearOfRelease")
    genres:          List[str]

    @classmethod
    def from_movie(cls, movie: Movie) -> "MovieResponse":
        return cls(
            id=movie.id,
            slug=movie.slug,
            title=movie.title,
            year_of_release=movie.year_of_release,
            genres=list(movie.genres),
        )

class MoviesResponse(BaseModel):
    items: List[MovieResponse]

class FieldErrorResponse(BaseModel):
    field:  str
    reason: str

class ErrorResponse(BaseModel):
    detail: str
    errors: Optional[List[FieldErrorResponse]] = None
