"""Observability layer - logging and metrics."""

from news_aggregator.observability.logging import setup_logging
from news_aggregator.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
