"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics and
health checks. Services are built from Settings in the lifespan unless an
already running instance is injected.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from magic_folder import __version__
from magic_folder.api.routes import router
from magic_folder.config import Settings, get_settings
from magic_folder.exceptions import ErrorCode, MagicFolderError
from magic_folder.logging_config import get_logger, setup_logging
from magic_folder.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from magic_folder.services import MagicFolder

logger = get_logger(__name__)

STATUS_CODES = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.PATH_NOT_FOUND: 404,
    ErrorCode.SCHEMA_MISMATCH: 409,
    ErrorCode.DIMENSION_MISMATCH: 422,
    ErrorCode.UPSTREAM_ERROR: 502,
    ErrorCode.CATALOG_BUSY: 503,
}


def create_app(
    settings: Settings | None = None,
    services: MagicFolder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration. Loaded from the environment when omitted.
        services: Started services to serve. When omitted they are built
            and started in the lifespan, and closed on shutdown.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(level=settings.log_level, environment=settings.environment)
        logger.info(
            "Starting Magic Folder API",
            extra={"version": __version__, "environment": settings.environment.value},
        )

        owned: MagicFolder | None = None
        if app.state.services is None:
            owned = MagicFolder.from_settings(settings)
            await owned.start()
            app.state.services = owned

        try:
            yield
        finally:
            logger.info("Shutting down Magic Folder API")
            if owned is not None:
                await owned.close()
                app.state.services = None

    app = FastAPI(
        title="Magic Folder",
        description="Semantic indexing and search over folder contents",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.services = services

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(MagicFolderError, magic_folder_exception_handler)

    app.add_api_route("/", root, methods=["GET"], tags=["Health"])
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics, methods=["GET"], tags=["Health"])
    app.include_router(router)

    return app


async def magic_folder_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Convert MagicFolderError exceptions to structured JSON responses."""
    if not isinstance(exc, MagicFolderError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=STATUS_CODES.get(exc.code, 500),
        content=exc.to_dict(),
    )


async def root() -> str:
    """Banner endpoint."""
    return "MagicFolder API is running!"


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness probe: reports whether both stores are reachable."""
    checks: dict[str, str] = {"config": "ok"}

    services: MagicFolder | None = request.app.state.services
    if services is None:
        checks["services"] = "not_configured"
    else:
        try:
            await services.vector_index.count()
            checks["vector_index"] = "ok"
        except MagicFolderError:
            checks["vector_index"] = "error"
        try:
            await services.catalog.count()
            checks["catalog"] = "ok"
        except MagicFolderError:
            checks["catalog"] = "error"
        checks["catalog_pending"] = str(services.catalog.pending)

    ready = all(v == "ok" for k, v in checks.items() if k != "catalog_pending")

    return {
        "status": "ready" if ready else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}


async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
