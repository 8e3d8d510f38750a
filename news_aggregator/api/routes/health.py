"""
Health and stats endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from news_aggregator.api.dependencies import get_optional_service, get_service
from news_aggregator.api.models import ErrorResponse, HealthResponse, StatsResponse
from news_aggregator.services.aggregation_service import AggregationService

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Reports whether the process is up and the scheduler loop is running.",
)
async def health_check(
    service: AggregationService | None = Depends(get_optional_service),
) -> HealthResponse:
    running = service.is_running if service is not None else False
    return HealthResponse(
        status="healthy" if running or service is None else "degraded",
        timestamp=datetime.now(timezone.utc),
        running=running,
    )


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={
        503: {"model": ErrorResponse, "description": "No service attached"},
    },
    summary="Pipeline statistics",
    description="Dedup cache snapshot and scheduler counters.",
)
async def get_stats(
    service: AggregationService = Depends(get_service),
) -> StatsResponse:
    return StatsResponse(**await service.stats())
