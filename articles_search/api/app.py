"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics,
health checks and the article repository.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from articles_search import __version__
from articles_search.api.routes import router
from articles_search.articles.models import ARTICLE_SCHEMA, Article
from articles_search.config import get_settings
from articles_search.exceptions import ArticlesSearchError, ErrorCode, TransportError
from articles_search.logging_config import get_logger, setup_logging
from articles_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from articles_search.repository.gateway import RedisDocumentGateway
from articles_search.repository.repository import DocumentRepository

logger = get_logger(__name__)

_STATUS_CODES = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.UNKNOWN_PARAMETER: 400,
    ErrorCode.EMPTY_QUERY: 400,
    ErrorCode.QUERY_REJECTED: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.MALFORMED_REPLY: 502,
    ErrorCode.STORE_REJECTED: 502,
    ErrorCode.TRANSPORT_ERROR: 503,
    ErrorCode.STORE_TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the store connection at startup and releases it at shutdown.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting articles search service",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    gateway = RedisDocumentGateway(settings.store)
    async with gateway:
        await gateway.connect()
        app.state.gateway = gateway
        app.state.repository = DocumentRepository(
            gateway=gateway,
            model=Article,
            schema=ARTICLE_SCHEMA,
            key_prefix=settings.search.key_prefix,
            index_name=settings.search.index_name,
            search_limit=settings.search.max_results,
        )

        yield

        logger.info("Shutting down articles search service")
        app.state.repository = None
        app.state.gateway = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Articles Search",
        description="Article storage with tag and full-text search over Redis",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(ArticlesSearchError, articles_exception_handler)

    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Metrics"])
    app.include_router(router)

    return app


async def articles_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle ArticlesSearchError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, ArticlesSearchError):
        return JSONResponse(
            status_code=500,
            content={"error": {"code": ErrorCode.INTERNAL_ERROR.value, "message": str(exc), "details": {}}},
        )

    status_code = _STATUS_CODES.get(exc.code, 500)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


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


async def readiness_check(request: Request) -> JSONResponse:
    """Kubernetes readiness probe.

    Ready only when the document store answers a ping.
    """
    checks: dict[str, str] = {"config": "ok"}

    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        checks["store"] = "not_connected"
    else:
        try:
            checks["store"] = "ok" if await gateway.ping() else "unavailable"
        except TransportError as e:
            logger.warning(f"Readiness ping failed: {e.message}")
            checks["store"] = "unavailable"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


app = create_app()
