"""Long-running services and their wiring."""

from news_aggregator.services.aggregation_service import (
    AggregationService,
    CycleResult,
    CycleState,
)
from news_aggregator.services.factory import build_service

__all__ = [
    "AggregationService",
    "CycleResult",
    "CycleState",
    "build_service",
]
