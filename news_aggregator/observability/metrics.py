"""
Prometheus metrics for monitoring the aggregation pipeline.

Defines and exposes metrics for:
- Items fetched per source and source errors
- Cycle outcomes and latency
- Classification throughput
- Dedup cache size and evictions
- Alert delivery

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from news_aggregator.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the aggregation pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_fetch("newsapi", count=10, latency=0.4)
        metrics.record_cycle("success", latency=2.1)
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Registry to register metrics with (default: global REGISTRY)
        """
        self._registry = registry or REGISTRY

        # Fetch stage
        self.items_fetched = Counter(
            "news_aggregator_items_fetched_total",
            "Total number of items returned by feed sources",
            ["source"],
            registry=self._registry,
        )

        self.source_errors = Counter(
            "news_aggregator_source_errors_total",
            "Total feed source failures (errors and timeouts)",
            ["source", "error_type"],
            registry=self._registry,
        )

        self.fetch_latency = Histogram(
            "news_aggregator_fetch_latency_seconds",
            "Time to fetch items from a feed source",
            ["source"],
            buckets=LATENCY_BUCKETS,
            registry=self._registry,
        )

        # Cycle
        self.cycles = Counter(
            "news_aggregator_cycles_total",
            "Pipeline cycles by outcome",
            ["outcome"],  # empty, success, classification_failed, error
            registry=self._registry,
        )

        self.cycles_skipped = Counter(
            "news_aggregator_cycles_skipped_total",
            "Ticks skipped because the previous cycle was still running",
            registry=self._registry,
        )

        self.cycle_latency = Histogram(
            "news_aggregator_cycle_latency_seconds",
            "Duration of one full pipeline cycle",
            buckets=LATENCY_BUCKETS,
            registry=self._registry,
        )

        # Classification
        self.items_classified = Counter(
            "news_aggregator_items_classified_total",
            "Items returned by the classifier",
            registry=self._registry,
        )

        self.items_dropped_by_classifier = Counter(
            "news_aggregator_items_dropped_by_classifier_total",
            "Candidate items the classifier did not return",
            registry=self._registry,
        )

        # Cache
        self.cache_size = Gauge(
            "news_aggregator_cache_size",
            "Number of entries in the dedup cache",
            registry=self._registry,
        )

        self.cache_evictions = Counter(
            "news_aggregator_cache_evictions_total",
            "Entries evicted by the retention sweep",
            registry=self._registry,
        )

        # Delivery
        self.alerts_dispatched = Counter(
            "news_aggregator_alerts_dispatched_total",
            "Alert deliveries by status",
            ["status"],  # delivered, failed, cancelled
            registry=self._registry,
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_fetch(
        self,
        source: str,
        count: int,
        latency: float | None = None,
    ) -> None:
        """Record a successful fetch from one source."""
        self.items_fetched.labels(source=source).inc(count)
        if latency is not None:
            self.fetch_latency.labels(source=source).observe(latency)

    def record_source_error(self, source: str, error_type: str) -> None:
        self.source_errors.labels(source=source, error_type=error_type).inc()

    def record_cycle(self, outcome: str, latency: float | None = None) -> None:
        """
        Record a completed cycle.

        Args:
            outcome: empty, success, classification_failed or error
            latency: Cycle duration in seconds
        """
        self.cycles.labels(outcome=outcome).inc()
        if latency is not None:
            self.cycle_latency.observe(latency)

    def record_skipped_cycle(self) -> None:
        self.cycles_skipped.inc()

    def record_classification(self, submitted: int, returned: int) -> None:
        """Record classifier throughput for one batch."""
        self.items_classified.inc(returned)
        if submitted > returned:
            self.items_dropped_by_classifier.inc(submitted - returned)

    def set_cache_size(self, size: int) -> None:
        self.cache_size.set(size)

    def record_evictions(self, count: int) -> None:
        if count > 0:
            self.cache_evictions.inc(count)

    def record_dispatch(self, status: str, count: int = 1) -> None:
        self.alerts_dispatched.labels(status=status).inc(count)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
