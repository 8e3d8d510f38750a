"""
FastAPI application factory.
"""

import time
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from news_aggregator import __version__
from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.api.routes import health, rules as rules_routes
from news_aggregator.services.aggregation_service import AggregationService

logger = structlog.get_logger(__name__)


def create_app(
    service: AggregationService | None = None,
    rules: AlertRuleRepository | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Running aggregation service for /health and /stats
        rules: Rule store shared with the pipeline (created if omitted)

    Returns:
        Configured FastAPI application
    """
    openapi_tags = [
        {"name": "health", "description": "Service health and pipeline statistics"},
        {"name": "rules", "description": "Subscriber alert rules"},
    ]

    app = FastAPI(
        title="News Aggregator API",
        description="""
Operational surface for the news aggregation pipeline.

- **/health**, **/stats**: liveness and dedup cache / scheduler counters
- **/rules**: manage the per-subscriber alert rules the pipeline matches against
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=openapi_tags,
    )

    app.state.service = service
    app.state.rules = rules if rules is not None else AlertRuleRepository()

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(rules_routes.router, tags=["rules"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "News Aggregator API",
            "version": __version__,
            "docs": "/docs",
        }

    return app
