# moviecatalog/api/dependencies.py
"""FastAPI dependencies for the catalog service and per-request deadlines."""

from typing import Optional

from fastapi import Request

from moviecatalog.core.config import get_settings
from moviecatalog.services.movies import MovieCatalogService


def get_catalog_service(request: Request) -> MovieCatalogService:
    """The service built during app start-up (see moviecatalog.main.lifespan)."""
    return request.app.state.catalog


def get_operation_timeout() -> Optional[float]:
    return get_settings().operation_timeout
