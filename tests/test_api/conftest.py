"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.alerts.schemas import AlertRule
from news_aggregator.api.app import create_app


@pytest.fixture
def rules() -> AlertRuleRepository:
    return AlertRuleRepository([
        AlertRule(subscriber_id="42", categories=["technology"], keywords=["bitcoin"]),
    ])


@pytest.fixture
def mock_service():
    """Stand-in for a running AggregationService."""
    service = MagicMock()
    service.is_running = True
    service.stats = AsyncMock(return_value={
        "total_cached_items": 7,
        "processed_count": 7,
        "retention_seconds": 86400,
        "running": True,
        "state": "idle",
        "cycles_completed": 3,
        "cycles_skipped": 1,
        "pending_dispatches": 0,
        "last_cycle": {"cycle_id": 3, "outcome": "empty"},
    })
    return service


@pytest.fixture
def client(mock_service, rules) -> TestClient:
    return TestClient(create_app(service=mock_service, rules=rules))
