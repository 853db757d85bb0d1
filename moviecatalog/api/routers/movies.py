# moviecatalog/api/routers/movies.py

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from moviecatalog.api.dependencies import get_catalog_service, get_operation_timeout
from moviecatalog.api.schemas import (
    CreateMovieRequest,
    MovieResponse,
    MoviesResponse,
    UpdateMovieRequest,
)
from moviecatalog.core.models import Movie
from moviecatalog.services.movies import MovieCatalogService

router = APIRouter(tags=["movies"])


@router.post("", status_code=201, response_model=MovieResponse, name="movies.create")
async def create_movie(
    payload: CreateMovieRequest,
    service: MovieCatalogService = Depends(get_catalog_service),
    timeout: Optional[float] = Depends(get_operation_timeout),
):
    movie = Movie.create(payload.title, payload.year_of_release, payload.genres)
    if not await service.create(movie, timeout=timeout):
        raise HTTPException(400, "Movie was not created")
    return MovieResponse.from_movie(movie)


@router.get("", response_model=MoviesResponse, name="movies.get_all")
async def get_all_movies(
    service: MovieCatalogService = Depends(get_catalog_service),
    timeout: Optional[float] = Depends(get_operation_timeout),
):
    movies = await service.get_all(timeout=timeout)
    return MoviesResponse(items=[MovieResponse.from_movie(m) for m in movies])


@router.get("/{id_or_slug}", response_model=MovieResponse, name="movies.get")
async def get_movie(
    id_or_slug: str,
    service: MovieCatalogService = Depends(get_catalog_service),
    timeout: Optional[float] = Depends(get_operation_timeout),
):
    movie = await service.get_by_id_or_slug(id_or_slug, timeout=timeout)
    if movie is None:
        raise HTTPException(404, "Movie not found")
    return MovieResponse.from_movie(movie)


@router.put("/{movie_id}", response_model=MovieResponse, name="movies.update")
async def update_movie(
    movie_id: uuid.UUID,
    payload: UpdateMovieRequest,
    service: MovieCatalogService = Depends(get_catalog_service),
    timeout: Optional[float] = Depends(get_operation_timeout),
):
    movie = Movie.with_id(movie_id, payload.title, payload.year_of_release, payload.genres)
    updated = await service.update(movie, timeout=timeout)
    if updated is None:
        raise HTTPException(404, "Movie not found")
    return MovieResponse.from_movie(updated)


@router.delete("/{movie_id}", name="movies.delete")
async def delete_movie(
    movie_id: uuid.UUID,
    service: MovieCatalogService = Depends(get_catalog_service),
    timeout: Optional[float] = Depends(get_operation_timeout),
):
    if not await service.delete_by_id(movie_id, timeout=timeout):
        raise HTTPException(404, "Movie not found")
    return {"status": "deleted"}
