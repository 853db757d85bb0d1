# moviecatalog/api/handlers.py

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from moviecatalog.api.schemas import ErrorResponse, FieldErrorResponse
from moviecatalog.core.errors import (
    ConstraintViolation,
    MovieValidationError,
    OperationCancelled,
    StoreUnavailable,
)
from moviecatalog.core.logger import setup_logger

logger = setup_logger(__name__)


def _error(status_code: int, detail: str, errors=None) -> JSONResponse:
    body = ErrorResponse(detail=detail, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MovieValidationError)
    async def _validation(request: Request, exc: MovieValidationError):
        errors = [FieldErrorResponse(field=e.field, reason=e.reason) for e in exc.errors]
        return _error(status.HTTP_400_BAD_REQUEST, "validation failed", errors)

    @app.exception_handler(ConstraintViolation)
    async def _constraint(request: Request, exc: ConstraintViolation):
        return _error(status.HTTP_409_CONFLICT, f"constraint violated: {exc.constraint or 'unknown'}")

    @app.exception_handler(StoreUnavailable)
    async def _unavailable(request: Request, exc: StoreUnavailable):
        logger.warning("Store unavailable for %s %s: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "database unavailable")

    @app.exception_handler(OperationCancelled)
    async def _cancelled(request: Request, exc: OperationCancelled):
        logger.warning("Deadline hit for %s %s", request.method, request.url.path)
        return _error(status.HTTP_504_GATEWAY_TIMEOUT, str(exc))
