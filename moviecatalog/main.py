# moviecatalog/main.py

from typing import Optional
from fastapi import FastAPI, APIRouter
from testcontainers.postgres import PostgresContainer
from contextlib import asynccontextmanager

from moviecatalog.api.handlers import register_exception_handlers
from moviecatalog.api.routers import movies
from moviecatalog.core.config import get_settings
from moviecatalog.core.db import ConnectionProvider, close_pg_pool, init_pg_pool
from moviecatalog.core.logger import setup_logger
from moviecatalog.core.schema import SchemaInitializer
from moviecatalog.core.store import MovieStore
from moviecatalog.services.movies import MovieCatalogService
from moviecatalog.services.validation import MovieValidator

logger = setup_logger(__name__, get_settings().log_level)

# Global container reference
postgres_container: Optional[PostgresContainer] = None


def build_catalog_service(provider: ConnectionProvider) -> MovieCatalogService:
    store = MovieStore(provider)
    return MovieCatalogService(store, MovieValidator(store))


def _start_test_container() -> Optional[str]:
    """Start a throwaway Postgres container and return its DSN, or None if Docker is unavailable."""
    global postgres_container
    settings = get_settings()
    try:
        postgres_container = PostgresContainer(
            image=settings.testcontainers_image,
            username=settings.db_user,
            password=settings.db_pass,
            dbname=settings.db_name,
        )
        postgres_container.start()
    except Exception as e:
        logger.warning("Testcontainers unavailable (%s); falling back to postgres_dsn", e)
        postgres_container = None
        return None
    raw_dsn = postgres_container.get_connection_url()
    if raw_dsn.startswith("postgresql+"):
        raw_dsn = "postgresql://" + raw_dsn.split("//", 1)[1]
    logger.info("Started test Postgres container: %s", raw_dsn)
    return raw_dsn


@asynccontextmanager
async def lifespan(app: FastAPI):
    global postgres_container
    settings = get_settings()

    # 1) Optionally launch a PostgreSQL Docker container
    if settings.enable_testcontainers:
        dsn = _start_test_container()
        if dsn:
            settings.postgres_dsn = dsn

    # 2) Initialize asyncpg pool
    await init_pg_pool()

    # 3) Ensure tables and the slug index exist
    provider = ConnectionProvider.from_settings()
    await SchemaInitializer(provider).initialize()

    app.state.catalog = build_catalog_service(provider)
    logger.info("Movie catalog ready")

    try:
        yield
    finally:
        await close_pg_pool()
        if postgres_container:
            try:
                postgres_container.stop()
                logger.info("Stopped test Postgres container")
            except Exception:
                logger.exception("Error stopping test Postgres container")
            postgres_container = None


def create_app() -> FastAPI:
    app = FastAPI(title="Movie Catalog API", lifespan=lifespan)
    register_exception_handlers(app)

    # API v1 routers
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(movies.router, prefix="/movies")
    app.include_router(api_v1)
    return app


app = create_app()
