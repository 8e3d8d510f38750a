"""Ingestion - item schema, feed sources, fetch coordination and dedup."""

from news_aggregator.ingestion.base_source import FeedSource
from news_aggregator.ingestion.coordinator import FetchCoordinator
from news_aggregator.ingestion.deduplication import CacheEntry, CacheStats, DedupCache
from news_aggregator.ingestion.schemas import (
    EnrichedItem,
    Item,
    compute_fingerprint,
    normalize_text,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "DedupCache",
    "EnrichedItem",
    "FeedSource",
    "FetchCoordinator",
    "Item",
    "compute_fingerprint",
    "normalize_text",
]
