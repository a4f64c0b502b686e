"""Main FastAPI application for the Precinct Locator API"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.responses import Response as StarletteResponse

from precinct_locator.config import Settings, settings
from precinct_locator.database import Database
from precinct_locator.dependencies import limiter
from precinct_locator.exceptions import (
    DatabaseStateError, DatasetUpgradeError, MalformedGeometryError, ScheduleConfigurationError,
)
from precinct_locator.ingestion.startup import DatasetBootstrapper
from precinct_locator.middleware import LoggingMiddleware
from precinct_locator.observability.metrics import REQUEST_COUNT, REQUEST_DURATION
from precinct_locator.observability.structured_logging import configure_logging
from precinct_locator.routers import datasets, health, schedules, zones
from precinct_locator.schemas.common import ErrorResponse

logger = structlog.get_logger()


def _error_response(request: Request, status_code: int, error: str, code: str) -> JSONResponse:
    run_id = getattr(request.state, 'run_id', str(uuid.uuid4()))
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, trace_id=run_id).model_dump(exclude_none=True)
    )


def create_app(database: Optional[Database] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    A database passed in is owned by the caller and left open on shutdown;
    otherwise one is created from settings and closed with the app.
    """
    app_settings = app_settings or settings
    owns_database = database is None
    database = database or Database(app_settings.database_url, echo=app_settings.database_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        # Startup
        logger.info("Starting Precinct Locator API", version=app_settings.app_version)
        database.open()
        app.state.startup_error = None

        if app_settings.seed_on_startup:
            try:
                DatasetBootstrapper(database, app_settings).run()
            except DatasetUpgradeError as e:
                # Keep serving; readyz reports not ready until a restart succeeds
                logger.error(
                    "Dataset bootstrap failed",
                    dataset_key=e.dataset_key,
                    target_version=e.target_version,
                    reason=e.reason,
                )
                app.state.startup_error = str(e)

        logger.info("Precinct Locator API started")

        yield

        # Shutdown
        logger.info("Shutting down Precinct Locator API")
        if owns_database:
            database.close()

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="NYC precinct and sector lookup with squad duty calendars",
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        openapi_url="/openapi.json" if app_settings.debug else None,
        lifespan=lifespan
    )
    app.state.database = database
    app.state.settings = app_settings
    app.state.startup_error = None

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if app_settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(LoggingMiddleware)

    # Include routers
    app.include_router(zones.router, prefix="/zones", tags=["zones"])
    app.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
    app.include_router(datasets.router, prefix="/datasets", tags=["datasets"])
    app.include_router(health.router, prefix="", tags=["health"])

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Middleware to collect Prometheus metrics"""
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(duration)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status_code=response.status_code
        ).inc()

        return response

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        return StarletteResponse(
            generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Global HTTP exception handler"""
        logger.warning(
            "HTTP exception",
            run_id=getattr(request.state, 'run_id', None),
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
            method=request.method
        )
        return _error_response(request, exc.status_code, exc.detail, f"HTTP_{exc.status_code}")

    @app.exception_handler(ScheduleConfigurationError)
    async def schedule_configuration_handler(request: Request, exc: ScheduleConfigurationError):
        logger.error(
            "Schedule misconfigured",
            run_id=getattr(request.state, 'run_id', None),
            squad_id=exc.squad_id,
            error=str(exc),
            path=request.url.path
        )
        return _error_response(request, 422, str(exc), "SCHEDULE_MISCONFIGURED")

    @app.exception_handler(MalformedGeometryError)
    async def malformed_geometry_handler(request: Request, exc: MalformedGeometryError):
        logger.error(
            "Malformed geometry",
            run_id=getattr(request.state, 'run_id', None),
            payload_kind=exc.payload_kind,
            error=str(exc),
            path=request.url.path
        )
        return _error_response(request, 422, str(exc), "MALFORMED_GEOMETRY")

    @app.exception_handler(DatabaseStateError)
    async def database_state_handler(request: Request, exc: DatabaseStateError):
        logger.error("Database unavailable", error=str(exc), path=request.url.path)
        return _error_response(request, 503, str(exc), "DATABASE_UNAVAILABLE")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(
            "Unhandled exception",
            run_id=getattr(request.state, 'run_id', None),
            exception=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=True
        )
        return _error_response(request, 500, "Internal server error", "INTERNAL_ERROR")

    return app


configure_logging(settings)

# Create FastAPI app
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "precinct_locator.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
