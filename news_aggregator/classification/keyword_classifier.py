"""Deterministic offline classifier for development and mock runs.

Scores each category by counting keyword hits in the title and body.
Items with no hits are left out of the result, matching the contract
that a classifier may drop items it cannot confidently categorize.
"""

from datetime import datetime, timezone

from news_aggregator.classification.base import Classifier
from news_aggregator.ingestion.schemas import EnrichedItem, Item, normalize_text

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "cryptocurrency": ("bitcoin", "ethereum", "crypto", "stablecoin", "blockchain", "etf"),
    "technology": ("ai", "chip", "cloud", "software", "accelerator", "outage", "app"),
    "finance": ("rates", "central bank", "inflation", "bond", "treasury", "reserve"),
    "politics": ("parliament", "bill", "election", "policy", "legislation", "senate"),
    "business": ("sales", "revenue", "prices", "retail", "earnings", "subscribers"),
    "health": ("drug", "health", "diabetes", "vaccine", "trial", "hospital"),
    "science": ("researchers", "battery", "study", "lab", "physics", "climate"),
    "sports": ("championship", "final", "league", "match", "tournament"),
    "entertainment": ("streaming", "film", "music", "series", "box office"),
}

POSITIVE_WORDS = ("climbs", "beat", "record", "progress", "approves", "strongest", "passes")
NEGATIVE_WORDS = ("outage", "falls", "crash", "suffers", "cuts", "warning", "lawsuit")


class KeywordClassifier(Classifier):
    """Keyword-count classifier with no external dependencies."""

    def __init__(self, min_hits: int = 1) -> None:
        self._min_hits = min_hits

    async def classify(self, items: list[Item]) -> list[EnrichedItem]:
        now = datetime.now(timezone.utc)
        enriched = []
        for item in items:
            result = self._classify_one(item, now)
            if result is not None:
                enriched.append(result)
        return enriched

    def _classify_one(self, item: Item, now: datetime) -> EnrichedItem | None:
        text = f" {normalize_text(item.text)} "

        hits: dict[str, list[str]] = {}
        for category, keywords in CATEGORY_KEYWORDS.items():
            matched = [kw for kw in keywords if f" {kw} " in text]
            if matched:
                hits[category] = matched

        if not hits:
            return None

        category, matched = max(hits.items(), key=lambda kv: len(kv[1]))
        if len(matched) < self._min_hits:
            return None

        total = sum(len(v) for v in hits.values())
        positive = sum(1 for w in POSITIVE_WORDS if f" {w} " in text)
        negative = sum(1 for w in NEGATIVE_WORDS if f" {w} " in text)
        if positive > negative:
            sentiment = "positive"
        elif negative > positive:
            sentiment = "negative"
        else:
            sentiment = "neutral"

        return item.enrich(
            category=category,
            tags=matched[:5],
            sentiment=sentiment,
            summary=item.body or item.title,
            confidence=round(len(matched) / total, 2),
            enriched_at=now,
        )
