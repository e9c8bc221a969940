"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workforce_engine.api.routes import (
    geofence_router,
    health_router,
    invoices_router,
    payroll_router,
    shifts_router,
)
from workforce_engine.config import get_settings
from workforce_engine.database import dispose_db, init_db
from workforce_engine.exceptions import (
    ConcurrentModificationError,
    DuplicateCommitError,
    EmptyPeriodError,
    PreviewMismatchError,
    RateNotConfiguredError,
    RecordNotFoundError,
    WorkforceEngineError,
)
from workforce_engine.logging_config import configure_logging
from workforce_engine.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

# Most specific first; the first matching class wins
ERROR_STATUS: list[tuple[type[WorkforceEngineError], int, str]] = [
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT, "CONCURRENT_MODIFICATION"),
    (DuplicateCommitError, status.HTTP_409_CONFLICT, "DUPLICATE_COMMIT"),
    (PreviewMismatchError, status.HTTP_409_CONFLICT, "PREVIEW_MISMATCH"),
    (InvalidTransitionError, status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    (RateNotConfiguredError, status.HTTP_422_UNPROCESSABLE_ENTITY, "CONFIGURATION_MISSING"),
    (EmptyPeriodError, status.HTTP_400_BAD_REQUEST, "NOTHING_TO_COMMIT"),
]


def error_status(exc: WorkforceEngineError) -> tuple[int, str]:
    for exc_type, status_code, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code, code
    return status.HTTP_400_BAD_REQUEST, "ENGINE_ERROR"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db(settings.database_url)
    logger.info("Workforce engine %s started", settings.engine_version)
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Workforce Engine API",
        description="Scheduling, payroll, billing and geofence computation for guard staffing",
        version=settings.engine_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(WorkforceEngineError)
    async def engine_exception_handler(
        request: Request, exc: WorkforceEngineError
    ) -> JSONResponse:
        """Map typed engine failures to HTTP responses."""
        status_code, code = error_status(exc)
        if status_code >= 500 or code == "ENGINE_ERROR":
            logger.error("Unmapped engine error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": str(exc),
                "code": code,
                "retryable": exc.retryable,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
                "retryable": False,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(shifts_router, prefix="/api/v1")
    app.include_router(geofence_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
