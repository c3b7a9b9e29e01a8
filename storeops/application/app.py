#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Configures the reporting API: lifespan (context build / close), request-id
middleware, CORS, routers under /api and typed-error handlers.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storeops.application.api.routes import health_router, report_routers
from storeops.application.context import ReportingContext, create_context
from storeops.core.config.constants import HEADER_REQUEST_ID, Stage
from storeops.core.config.settings import get_settings
from storeops.core.exceptions import (
    ClientBootstrapError,
    ConnectionUnavailableError,
    NotConfiguredError,
    QueryFailedError,
    StoreOpsError,
)
from storeops.core.logging import clear_request_id, get_logger, get_request_id, set_request_id, setup_logging

logger = get_logger(__name__)

API_PREFIX = "/api"

# Status code per error class (first match wins)
ERROR_STATUS: list[tuple[type[StoreOpsError], int]] = [
    (NotConfiguredError, 503),
    (ConnectionUnavailableError, 503),
    (ClientBootstrapError, 503),
    (QueryFailedError, 500),
]


def status_for(exc: StoreOpsError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the ReportingContext on startup and close it on shutdown.

    A context handed to create_app() is used as-is and left open; the
    caller owns it.
    """
    settings = get_settings()
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    owned = getattr(app.state, "context", None) is None
    if owned:
        logger.info(
            "Starting reporting API",
            stage=Stage.APP_STARTUP.value,
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
        )
        try:
            app.state.context = await create_context(settings)
        except ClientBootstrapError as e:
            logger.critical(
                "Oracle client bootstrap failed; exiting",
                stage=Stage.POOL_BOOTSTRAP.value,
                **e.to_dict(),
            )
            raise SystemExit(1) from e

    logger.info("Application startup complete", stage=Stage.APP_STARTUP.value)
    try:
        yield
    finally:
        logger.info("Shutting down application", stage=Stage.APP_SHUTDOWN.value)
        if owned and getattr(app.state, "context", None) is not None:
            await app.state.context.close()
            app.state.context = None
        logger.info("Application shutdown complete", stage=Stage.APP_SHUTDOWN.value)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(context: ReportingContext | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context: Pre-built context (tests); built in the lifespan when None

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Store operations reporting API with a cache-aside data-access layer",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Bind X-Request-ID (or a fresh UUID) into the logging context."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.exception_handler(StoreOpsError)
    async def storeops_exception_handler(request: Request, exc: StoreOpsError):
        status_code = status_for(exc)
        request_id = exc.request_id or get_request_id()
        log = logger.error if status_code >= 500 and status_code != 503 else logger.warning
        log(
            f"Request failed: {exc.message}",
            error_type=type(exc).__name__,
            code=exc.code,
            status_code=status_code,
            path=request.url.path,
            details=exc.details,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": exc.message,
                "code": exc.code,
                "request_id": request_id,
            },
            headers={HEADER_REQUEST_ID: request_id or ""},
        )

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "success": True,
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "health": f"{API_PREFIX}/health",
        }

    app.include_router(health_router, prefix=API_PREFIX)
    for router in report_routers:
        app.include_router(router, prefix=API_PREFIX)

    return app
