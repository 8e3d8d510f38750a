"""
Time-bounded deduplication cache keyed by content fingerprint.

Holds every item the pipeline has classified, keyed by its fingerprint,
so a story republished under a different origin id (by another provider
or by the same one) is filtered out before classification. Entries expire
after a retention window; a background sweep evicts them.

All accessors and the sweep share a single asyncio.Lock, so every read
sees whole entries and the sweep never races an insert.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from news_aggregator.ingestion.schemas import Item
from news_aggregator.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    """A cached item and when it was processed."""

    item: Item
    processed_at: datetime
    processed: bool = False


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of the cache for observability."""

    total: int
    processed: int
    retention: timedelta

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cached_items": self.total,
            "processed_count": self.processed,
            "retention_seconds": int(self.retention.total_seconds()),
        }


class DedupCache:
    """
    Memory-resident fingerprint -> item store with TTL eviction.

    Explicitly constructed and injected; nothing here is module-global.
    State does not survive a restart.

    Usage:
        cache = DedupCache(retention=timedelta(hours=24))
        cache.start(shutdown_event)
        if not await cache.has(item.fingerprint):
            ...
        await cache.close()
    """

    def __init__(
        self,
        retention: timedelta = timedelta(hours=24),
        sweep_interval: float = 3600.0,
        clock: Clock = _utc_now,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the cache.

        Args:
            retention: Maximum age of an entry before eviction
            sweep_interval: Seconds between background sweeps
            clock: Source of the current time (injectable for tests)
            metrics: Metrics collector (defaults to the global one)
        """
        if retention <= timedelta(0):
            raise ValueError("retention must be positive")

        self._retention = retention
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._metrics = metrics or get_metrics()

        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

        self._sweep_task: asyncio.Task | None = None
        self._shutdown: asyncio.Event | None = None

    @property
    def retention(self) -> timedelta:
        return self._retention

    async def has(self, fingerprint: str) -> bool:
        """Check whether a fingerprint is cached."""
        async with self._lock:
            return fingerprint in self._entries

    async def get(self, fingerprint: str) -> Item | None:
        """Get the cached item for a fingerprint, if any."""
        async with self._lock:
            entry = self._entries.get(fingerprint)
            return entry.item if entry else None

    async def add(self, item: Item) -> None:
        """
        Insert or overwrite the entry for ``item.fingerprint``.

        Stamps processed_at with the current time.
        """
        async with self._lock:
            self._entries[item.fingerprint] = CacheEntry(
                item=item,
                processed_at=self._clock(),
            )
            size = len(self._entries)
        self._metrics.set_cache_size(size)

    async def mark_processed(self, fingerprint: str) -> None:
        """
        Mark an entry as processed and refresh its timestamp.

        Idempotent; a no-op for unknown fingerprints.
        """
        async with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                return
            self._entries[fingerprint] = CacheEntry(
                item=entry.item,
                processed_at=self._clock(),
                processed=True,
            )

    async def filter_new(self, items: Iterable[Item]) -> list[Item]:
        """
        Drop items whose fingerprint is cached or repeated within the batch.

        The first occurrence of each fingerprint in ``items`` wins. Runs under
        one lock acquisition so the whole batch sees one snapshot.
        """
        seen: set[str] = set()
        fresh: list[Item] = []
        async with self._lock:
            for item in items:
                if item.fingerprint in self._entries or item.fingerprint in seen:
                    continue
                seen.add(item.fingerprint)
                fresh.append(item)
        return fresh

    async def unprocessed(self) -> list[Item]:
        """List cached items that have not been marked processed."""
        async with self._lock:
            return [e.item for e in self._entries.values() if not e.processed]

    async def stats(self) -> CacheStats:
        """Snapshot of entry counts and retention."""
        async with self._lock:
            return CacheStats(
                total=len(self._entries),
                processed=sum(1 for e in self._entries.values() if e.processed),
                retention=self._retention,
            )

    async def sweep(self, now: datetime | None = None) -> int:
        """
        Evict every entry older than the retention window.

        An entry is evicted when ``now - processed_at > retention``.

        Returns:
            Number of evicted entries
        """
        now = now or self._clock()
        async with self._lock:
            expired = [
                fingerprint
                for fingerprint, entry in self._entries.items()
                if now - entry.processed_at > self._retention
            ]
            for fingerprint in expired:
                del self._entries[fingerprint]
            size = len(self._entries)

        self._metrics.record_evictions(len(expired))
        self._metrics.set_cache_size(size)
        if expired:
            logger.info(f"Evicted {len(expired)} expired cache entries, {size} remain")
        return len(expired)

    def start(self, shutdown: asyncio.Event | None = None) -> None:
        """
        Start the background sweep loop.

        Args:
            shutdown: Shared shutdown signal; the loop exits when it is set
        """
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._shutdown = shutdown or asyncio.Event()
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="cache_sweep")

    async def close(self) -> None:
        """Stop the sweep loop and wait for it to exit."""
        if self._shutdown is not None:
            self._shutdown.set()
        if self._sweep_task is not None:
            try:
                await asyncio.wait_for(self._sweep_task, timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                self._sweep_task.cancel()
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        assert self._shutdown is not None
        logger.info(
            f"Cache sweep started: retention={self._retention}, "
            f"interval={self._sweep_interval:.0f}s"
        )
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self._sweep_interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}", exc_info=True)

        logger.info("Cache sweep stopped")
