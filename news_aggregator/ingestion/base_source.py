"""
Base feed source interface and shared functionality.

Each feed source implements ``_fetch_raw()`` (talk to the provider) and
``_transform()`` (provider payload -> Item). The base class provides:
- Limit enforcement
- Per-record error isolation during transformation
- Conversion of provider failures into SourceFetchError
- Logging and run statistics
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from news_aggregator.errors import SourceFetchError
from news_aggregator.ingestion.http_client import HTTPClientError
from news_aggregator.ingestion.schemas import Item

logger = logging.getLogger(__name__)


@dataclass
class SourceStats:
    """Statistics for a source run."""

    items_fetched: int = 0
    items_filtered: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_time


class FeedSource(ABC):
    """
    Abstract base class for feed sources.

    Subclasses must implement:
        - name: Stable source name (used in logs, metrics and Item.source)
        - _fetch_raw(): Fetch raw provider records
        - _transform(): Convert one raw record to an Item
    """

    def __init__(self) -> None:
        self._stats = SourceStats()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the source name."""
        ...

    @abstractmethod
    async def _fetch_raw(self, limit: int) -> list[dict[str, Any]]:
        """
        Fetch raw records from the provider.

        Args:
            limit: Maximum number of records wanted (providers may ignore it)

        Raises:
            HTTPClientError, ValueError, KeyError on provider failure
        """
        ...

    @abstractmethod
    def _transform(self, raw: dict[str, Any]) -> Item | None:
        """
        Transform one raw record into an Item.

        Returns:
            Item or None if the record should be skipped
        """
        ...

    async def fetch(self, limit: int) -> list[Item]:
        """
        Fetch up to ``limit`` items from the provider.

        This is the entry point called by the fetch coordinator. A single
        malformed record is skipped; a provider-level failure raises.

        Raises:
            SourceFetchError: If the provider request or payload is unusable
        """
        self._stats = SourceStats()

        try:
            records = await self._fetch_raw(limit)
        except (HTTPClientError, ValueError, KeyError, TypeError) as e:
            self._stats.errors += 1
            raise SourceFetchError(self.name, str(e)) from e

        items: list[Item] = []
        for raw in records:
            if len(items) >= limit:
                break
            try:
                item = self._transform(raw)
            except Exception as e:
                self._stats.errors += 1
                logger.warning(f"Skipping malformed record in {self.name}: {e}")
                continue

            if item is None:
                self._stats.items_filtered += 1
                continue

            items.append(item)

        self._stats.items_fetched = len(items)
        logger.debug(
            f"{self.name} completed: "
            f"fetched={self._stats.items_fetched}, "
            f"filtered={self._stats.items_filtered}, "
            f"errors={self._stats.errors}, "
            f"elapsed={self._stats.elapsed_seconds:.2f}s"
        )
        return items

    @property
    def stats(self) -> SourceStats:
        """Get statistics for the last run."""
        return self._stats


def clean_text(text: str | None) -> str:
    """Collapse whitespace and strip control characters."""
    if not text:
        return ""
    text = " ".join(text.split())
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)
    return text.strip()


def parse_iso_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 timestamp, falling back to now for missing or bad values."""
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
