"""
NewsAPI feed source.

Pulls the latest English headlines from newsapi.org. Articles carry a
description and/or truncated content, so the fingerprint covers both
title and body.
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

NEWSAPI_HEADLINES_URL = "https://newsapi.org/v2/top-headlines"


class NewsAPISource(FeedSource):
    """Feed source for newsapi.org top headlines."""

    def __init__(
        self,
        api_keys: APIKeyRotator,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
        language: str = "en",
    ):
        super().__init__()
        self._auth = APIKeyAuth(rotator=api_keys, header="X-Api-Key")
        self._retry_config = retry_config or RetryConfig()
        self._timeout = timeout
        self._language = language

    @property
    def name(self) -> str:
        return "newsapi"

    async def _fetch_raw(self, limit: int) -> list[dict[str, Any]]:
        async with HTTPClient(self._retry_config, timeout=self._timeout) as client:
            response = await client.get(
                NEWSAPI_HEADLINES_URL,
                params={"language": self._language, "pageSize": limit},
                auth=self._auth,
            )

        payload = response.json()
        if payload.get("status") != "ok":
            raise ValueError(
                f"newsapi error: {payload.get('code') or payload.get('status')}"
            )
        return payload.get("articles") or []

    def _transform(self, raw: dict[str, Any]) -> Item | None:
        title = clean_text(raw.get("title"))
        url = raw.get("url") or ""
        if not title or not url or title == "[Removed]":
            return None

        body = clean_text(raw.get("description")) or clean_text(raw.get("content"))
        source_info = raw.get("source") or {}

        return Item(
            id=f"newsapi_{url}",
            title=title,
            body=body,
            url=url,
            source=self.name,
            published_at=parse_iso_timestamp(raw.get("publishedAt")),
            metadata={
                "author": raw.get("author"),
                "source_name": source_info.get("name"),
                "source_id": source_info.get("id"),
                "image_url": raw.get("urlToImage"),
            },
        )
