"""Pytest fixtures for news-aggregator tests."""

from datetime import datetime, timezone

import pytest
from prometheus_client import CollectorRegistry

from news_aggregator.config.settings import Settings
from news_aggregator.ingestion.schemas import EnrichedItem, Item
from news_aggregator.observability.metrics import MetricsCollector


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        poll_interval_seconds=0.05,
        shutdown_grace_seconds=0.5,
        treenews_enabled=False,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def sample_item() -> Item:
    """Create a sample item for testing."""
    return Item(
        id="newsapi_https://example.com/btc",
        title="Bitcoin climbs above $70,000 as ETF inflows surge",
        body="Spot bitcoin funds recorded their strongest week of inflows.",
        url="https://example.com/btc",
        source="newsapi",
        published_at=datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc),
        metadata={"author": "Jane Reporter"},
    )


@pytest.fixture
def sample_enriched(sample_item: Item) -> EnrichedItem:
    """The sample item after classification."""
    return sample_item.enrich(
        category="cryptocurrency",
        tags=["bitcoin", "etf"],
        sentiment="positive",
        summary="Bitcoin rallies on record ETF demand.",
        confidence=0.92,
        enriched_at=datetime(2026, 3, 1, 12, 0, 30, tzinfo=timezone.utc),
    )
