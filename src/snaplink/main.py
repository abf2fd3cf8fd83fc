"""
Main FastAPI application entry point.

This module sets up the FastAPI app with middleware, routes, and lifecycle events.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import healthz_router, metrics_router, redirect_router, shorturls_router
from .config import Settings, get_settings
from .core.exceptions import SnapLinkException
from .core.metrics import MetricsCollector
from .core.shipper import LogShipper
from .core.store import KeyStore
from .core.token_manager import TokenManager


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # Silence the verbose watchfiles logger
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Builds the store and the log shipper, and closes the shipper's
        HTTP sessions on shutdown.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting SnapLink service", version=app.version)

        metrics_collector = MetricsCollector()
        app.state.metrics = metrics_collector

        token_manager = TokenManager(
            timeout_seconds=settings.collector.timeout_seconds,
            default_lifetime_seconds=settings.collector.default_token_lifetime_seconds,
            metrics=metrics_collector,
        )
        shipper = LogShipper(settings.collector, token_manager=token_manager, metrics=metrics_collector)
        app.state.shipper = shipper
        await shipper.start()

        app.state.store = KeyStore(settings.store, shipper=shipper, metrics=metrics_collector)

        try:
            logger.info("SnapLink service started successfully", port=settings.port)
            shipper.info("service", f"URL Shortener server started successfully on port {settings.port}", {
                "port": settings.port,
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            })
            yield
        finally:
            logger.info("Shutting down SnapLink service")
            await shipper.stop()
            logger.info("SnapLink service shutdown complete")

    return lifespan


async def snaplink_exception_handler(request: Request, exc: SnapLinkException) -> JSONResponse:
    """Handle custom SnapLink exceptions."""
    logger = structlog.get_logger(__name__)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "SnapLink exception occurred",
        error=str(exc),
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": str(exc),
            "details": exc.details,
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    shipper: Optional[LogShipper] = getattr(request.app.state, "shipper", None)
    if shipper is not None:
        shipper.error("route", "Unhandled error", {
            "path": request.url.path,
            "error": str(exc),
        })

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )


async def request_telemetry_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Record request metrics and ship one event per request."""
    start = time.monotonic()
    response = await call_next(request)
    duration = time.monotonic() - start

    endpoint = getattr(request.scope.get("endpoint"), "__name__", "unmatched")

    metrics: Optional[MetricsCollector] = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_request(request.method, endpoint, response.status_code, duration)

    shipper: Optional[LogShipper] = getattr(request.app.state, "shipper", None)
    if shipper is not None:
        shipper.debug("middleware", "Request handled", {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "durationMs": round(duration * 1000, 2),
        })

    return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function ensures all configuration is applied
    whether running via uvicorn or in tests.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(settings.log_level)

    app = FastAPI(
        title="SnapLink",
        description="URL shortener with expiring links and click tracking",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings),
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_telemetry_middleware)

    app.add_exception_handler(SnapLinkException, snaplink_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)

    # The redirect catch-all goes last so it cannot shadow fixed paths
    app.include_router(shorturls_router, tags=["shorturls"])
    app.include_router(healthz_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(redirect_router, tags=["redirect"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "SnapLink",
            "version": app.version,
            "description": "URL shortener with expiring links and click tracking",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "snaplink.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )
