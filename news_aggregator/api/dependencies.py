"""
Dependency injection for FastAPI endpoints.

The app factory stores the running service and the shared rule store on
``app.state``; these accessors hand them to route handlers.
"""

from fastapi import HTTPException, Request, status

from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.services.aggregation_service import AggregationService


def get_service(request: Request) -> AggregationService:
    """Get the aggregation service, or 503 when the API runs without one."""
    service: AggregationService | None = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Aggregation service not attached",
        )
    return service


def get_optional_service(request: Request) -> AggregationService | None:
    return getattr(request.app.state, "service", None)


def get_rule_repository(request: Request) -> AlertRuleRepository:
    """Get the rule store shared with the pipeline."""
    return request.app.state.rules
