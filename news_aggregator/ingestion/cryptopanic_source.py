"""
CryptoPanic feed source.

CryptoPanic posts are headlines only; the title doubles as the body, so
reposts of the same headline from other feeds fingerprint identically.
"""

import logging
from typing import Any

from news_aggregator.ingestion.base_source import FeedSource, clean_text, parse_iso_timestamp
from news_aggregator.ingestion.http_client import (
    APIKeyAuth,
    APIKeyRotator,
    HTTPClient,
    RetryConfig,
)
from news_aggregator.ingestion.schemas import Item

logger = logging.getLogger(__name__)

CRYPTOPANIC_POSTS_URL = "https://cryptopanic.com/api/v1/posts/"


class CryptoPanicSource(FeedSource):
    """Feed source for public CryptoPanic posts."""

    def __init__(
        self,
        api_key: str,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
    ):
        super().__init__()
        self._auth = APIKeyAuth(rotator=APIKeyRotator(keys=[api_key]), param="auth_token")
        self._retry_config = retry_config or RetryConfig()
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "cryptopanic"

    async def _fetch_raw(self, limit: int) -> list[dict[str, Any]]:
        async with HTTPClient(self._retry_config, timeout=self._timeout) as client:
            response = await client.get(
                CRYPTOPANIC_POSTS_URL,
                params={"public": "true", "page_size": limit},
                auth=self._auth,
            )
        return response.json()["results"]

    def _transform(self, raw: dict[str, Any]) -> Item | None:
        title = clean_text(raw.get("title"))
        if not title:
            return None

        votes = raw.get("votes") or {}
        return Item(
            id=f"cryptopanic_{raw['id']}",
            title=title,
            body=title,
            url=raw.get("url") or "",
            source=self.name,
            published_at=parse_iso_timestamp(raw.get("published_at")),
            metadata={
                "source_name": (raw.get("source") or {}).get("title"),
                "votes_positive": str(votes.get("positive", 0)),
                "votes_negative": str(votes.get("negative", 0)),
            },
        )
