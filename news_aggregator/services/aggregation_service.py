"""
Aggregation service - drives the pipeline one cycle per tick.

Each cycle: fetch from all sources -> drop fingerprints already cached ->
classify the survivors -> cache them and mark processed -> match against
subscriber rules -> hand matches to the dispatcher.

Features:
- Strictly serialized cycles (an overrunning cycle makes the next tick skip)
- Whole-batch abort on classifier failure, with no cache mutation
- Shared shutdown signal for the scheduler and the cache sweep
- Bounded grace period on shutdown for the in-flight cycle and dispatches
"""

import asyncio
import enum
import itertools
import time
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from news_aggregator.alerts.dispatcher import AlertDispatcher
from news_aggregator.alerts.matcher import match
from news_aggregator.alerts.repository import RuleProvider
from news_aggregator.classification.base import Classifier
from news_aggregator.errors import ClassificationError
from news_aggregator.ingestion.coordinator import FetchCoordinator
from news_aggregator.ingestion.deduplication import DedupCache
from news_aggregator.observability.logging import cycle_context
from news_aggregator.observability.metrics import MetricsCollector, get_metrics

logger = structlog.get_logger(__name__)


class CycleState(str, enum.Enum):
    """Stage the scheduler is currently in."""

    IDLE = "idle"
    FETCHING = "fetching"
    FILTERING = "filtering"
    CLASSIFYING = "classifying"
    UPDATING_CACHE = "updating_cache"
    DISPATCHING = "matching_and_dispatching"


@dataclass
class CycleResult:
    """Summary of one pipeline pass."""

    cycle_id: int
    outcome: str = "success"  # empty, success, classification_failed, error, cancelled
    fetched: int = 0
    candidates: int = 0
    classified: int = 0
    cached: int = 0
    alerts: int = 0
    duration_seconds: float = 0.0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AggregationService:
    """
    Cycle scheduler for the aggregation pipeline.

    Components are constructed by the caller and injected; see
    ``services.factory.build_service`` for the settings-driven wiring.

    Usage:
        service = AggregationService(coordinator, cache, classifier, rules, dispatcher)
        task = asyncio.create_task(service.start())
        ...
        await service.stop()
        await task
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        cache: DedupCache,
        classifier: Classifier,
        rules: RuleProvider,
        dispatcher: AlertDispatcher,
        poll_interval: float = 30.0,
        batch_size: int = 10,
        shutdown_grace: float = 5.0,
        shutdown: asyncio.Event | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the scheduler.

        Args:
            coordinator: Multi-source fetch stage
            cache: Dedup cache carried across cycles
            classifier: Batch enrichment collaborator
            rules: Read-only rule provider
            dispatcher: Alert delivery
            poll_interval: Seconds between ticks
            batch_size: Per-source fetch limit
            shutdown_grace: Seconds granted to in-flight work on shutdown
            shutdown: Shared shutdown signal (created if omitted)
            metrics: Metrics collector (defaults to the global one)
        """
        self._coordinator = coordinator
        self._cache = cache
        self._classifier = classifier
        self._rules = rules
        self._dispatcher = dispatcher
        self._poll_interval = poll_interval
        self._batch_size = batch_size
        self._shutdown_grace = shutdown_grace
        self._shutdown = shutdown
        self._metrics = metrics or get_metrics()

        self._state = CycleState.IDLE
        self._running = False
        self._cycle_ids = itertools.count(1)
        self._cycle_task: asyncio.Task | None = None
        self._cycles_completed = 0
        self._cycles_skipped = 0
        self._last_result: CycleResult | None = None

        logger.info(
            "Aggregation service initialized",
            sources=[s.name for s in coordinator.sources],
            classifier=classifier.name,
            poll_interval=poll_interval,
            batch_size=batch_size,
        )

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cache(self) -> DedupCache:
        return self._cache

    @property
    def last_result(self) -> CycleResult | None:
        return self._last_result

    async def start(self) -> None:
        """
        Run the scheduler loop.

        The first cycle starts immediately, then one per ``poll_interval``.
        Returns after stop() is called (or the shared shutdown signal is set)
        and in-flight work has been drained or cancelled.
        """
        if self._shutdown is None:
            self._shutdown = asyncio.Event()
        self._running = True

        logger.info("Starting aggregation service")
        self._cache.start(self._shutdown)

        try:
            while not self._shutdown.is_set():
                self.trigger_cycle()
                try:
                    await asyncio.wait_for(
                        self._shutdown.wait(), timeout=self._poll_interval
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.close()

    async def stop(self) -> None:
        """Signal the scheduler loop to stop."""
        logger.info("Stopping aggregation service")
        if self._shutdown is None:
            self._shutdown = asyncio.Event()
        self._shutdown.set()

    def trigger_cycle(self) -> bool:
        """
        Start a cycle in the background unless one is already in flight.

        Returns:
            True if a cycle was started, False if the tick was skipped
        """
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycles_skipped += 1
            self._metrics.record_skipped_cycle()
            logger.warning(
                "Previous cycle still running, skipping tick",
                state=self._state.value,
                skipped_total=self._cycles_skipped,
            )
            return False

        self._cycle_task = asyncio.create_task(self.run_cycle(), name="aggregation_cycle")
        return True

    async def run_cycle(self) -> CycleResult:
        """
        Run one full pipeline pass.

        Never raises except on cancellation: every failure is logged and
        reported through the returned result's ``outcome``.
        """
        result = CycleResult(cycle_id=next(self._cycle_ids))
        start_time = time.monotonic()

        with cycle_context(result.cycle_id):
            try:
                await self._run_stages(result)
            except asyncio.CancelledError:
                result.outcome = "cancelled"
                logger.warning("Cycle cancelled", stage=self._state.value)
                raise
            except Exception as e:
                result.outcome = "error"
                result.error = str(e)
                logger.error("Cycle failed", stage=self._state.value, error=str(e), exc_info=True)
            finally:
                result.duration_seconds = round(time.monotonic() - start_time, 4)
                self._state = CycleState.IDLE
                self._cycles_completed += 1
                self._last_result = result
                self._metrics.record_cycle(result.outcome, latency=result.duration_seconds)

        return result

    async def _run_stages(self, result: CycleResult) -> None:
        self._state = CycleState.FETCHING
        items = await self._coordinator.fetch_all(self._batch_size)
        result.fetched = len(items)

        self._state = CycleState.FILTERING
        candidates = await self._cache.filter_new(items)
        result.candidates = len(candidates)
        if not candidates:
            result.outcome = "empty"
            logger.info("No new items this cycle", fetched=result.fetched)
            return

        self._state = CycleState.CLASSIFYING
        try:
            enriched = await self._classifier.classify(candidates)
        except ClassificationError as e:
            result.outcome = "classification_failed"
            result.error = str(e)
            logger.error(
                "Classification failed, batch will be retried next cycle",
                candidates=len(candidates),
                error=str(e),
            )
            return

        # Only items that were submitted this cycle may enter the cache
        submitted = {item.fingerprint for item in candidates}
        enriched = [item for item in enriched if item.fingerprint in submitted]
        result.classified = len(enriched)
        self._metrics.record_classification(len(candidates), len(enriched))

        self._state = CycleState.UPDATING_CACHE
        for item in enriched:
            await self._cache.add(item)
            await self._cache.mark_processed(item.fingerprint)
        result.cached = len(enriched)

        self._state = CycleState.DISPATCHING
        rules = await self._rules.list_rules()
        for item in enriched:
            subscribers = match(item, rules)
            if subscribers:
                self._dispatcher.submit(item, subscribers)
                result.alerts += len(subscribers)

        logger.info(
            "Cycle completed",
            fetched=result.fetched,
            candidates=result.candidates,
            classified=result.classified,
            alerts=result.alerts,
        )

    async def stats(self) -> dict[str, Any]:
        """Cache snapshot plus scheduler counters."""
        cache_stats = await self._cache.stats()
        return {
            **cache_stats.to_dict(),
            "running": self._running,
            "state": self._state.value,
            "cycles_completed": self._cycles_completed,
            "cycles_skipped": self._cycles_skipped,
            "pending_dispatches": self._dispatcher.pending,
            "last_cycle": self._last_result.to_dict() if self._last_result else None,
        }

    async def close(self) -> None:
        """Drain or cancel in-flight work within the grace period.

        Called by start() on the way out; call directly after using
        run_cycle() without the loop.
        """
        task = self._cycle_task
        if task is not None and not task.done():
            logger.info("Waiting for in-flight cycle", grace_seconds=self._shutdown_grace)
            await asyncio.wait({task}, timeout=self._shutdown_grace)
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                logger.warning("In-flight cycle cancelled on shutdown")
        self._cycle_task = None

        dropped = await self._dispatcher.shutdown(self._shutdown_grace)
        await self._cache.close()

        self._running = False
        logger.info("Aggregation service stopped", dropped_dispatches=dropped)
