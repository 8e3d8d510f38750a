"""
Tree of Alpha news feed source.

The endpoint takes no page size and returns the latest messages newest
first; the limit is applied client-side. Timestamps are epoch milliseconds.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from news_aggregator.ingestion.base_source import FeedSource, clean_text
from news_aggregator.ingestion.http_client import HTTPClient, RetryConfig
from news_aggregator.ingestion.schemas import Item

logger = logging.getLogger(__name__)

TREENEWS_URL = "https://news.treeofalpha.com/api/news"


class TreeNewsSource(FeedSource):
    """Feed source for the public Tree of Alpha news API."""

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
    ):
        super().__init__()
        self._retry_config = retry_config or RetryConfig()
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "treenews"

    async def _fetch_raw(self, limit: int) -> list[dict[str, Any]]:
        async with HTTPClient(self._retry_config, timeout=self._timeout) as client:
            response = await client.get(TREENEWS_URL)

        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError("treenews returned a non-list payload")
        return payload[:limit]

    def _transform(self, raw: dict[str, Any]) -> Item | None:
        title = clean_text(raw.get("title"))
        if not title:
            return None

        millis = int(raw.get("time") or 0)
        coins = [s["coin"] for s in raw.get("suggestions") or [] if s.get("coin")]

        return Item(
            id=str(raw["_id"]),
            title=title,
            body=title,
            url=raw.get("url") or "",
            source=self.name,
            published_at=datetime.fromtimestamp(millis / 1000, tz=timezone.utc),
            metadata={
                "source": raw.get("source"),
                "suggested_coins": ",".join(coins),
            },
        )
