import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ygodeck.api import auth_router, cards_router, decks_router, health_router
from ygodeck.config import configure_logging, settings
from ygodeck.db.database import init_db
from ygodeck.models.failure import ErrorResponse, FailureKind, FieldError, KnownError
from ygodeck.services.catalog import CatalogClient

logger = logging.getLogger(__name__)

_LOCATION_ROOTS = ("body", "query", "path")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging()
    await init_db()
    app.state.catalog = CatalogClient()
    yield
    await app.state.catalog.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("ygodeck"),
    lifespan=lifespan,
)

app.include_router(auth_router)
app.include_router(cards_router)
app.include_router(decks_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_json(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(KnownError)
async def known_error_handler(request: Request, exc: KnownError) -> JSONResponse:
    """Explainable failures keep their status and message."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail
        )
    return _error_json(exc.status_code, exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are 400 with field details."""
    details = [
        FieldError(
            path=".".join(str(part) for part in error["loc"] if part not in _LOCATION_ROOTS),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    body = ErrorResponse(
        error="Invalid request data.", kind=FailureKind.INVALID_INPUT, details=details
    )
    return _error_json(status.HTTP_400_BAD_REQUEST, body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (404, 405) in the common error shape."""
    kind = FailureKind.NOT_FOUND if exc.status_code == 404 else FailureKind.UNKNOWN
    body = ErrorResponse(error=str(exc.detail), kind=kind)
    return _error_json(exc.status_code, body)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all so stack traces never reach the client."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse(error="Internal server error.", kind=FailureKind.UNKNOWN)
    return _error_json(status.HTTP_500_INTERNAL_SERVER_ERROR, body)
