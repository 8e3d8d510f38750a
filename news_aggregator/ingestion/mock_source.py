"""
Mock feed source for testing and development.

Generates synthetic headlines from a small fixed pool, so repeated fetches
and multiple mock sources naturally republish the same stories. Useful for:
- Running the pipeline without provider credentials
- Exercising deduplication across sources and cycles
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any

from news_aggregator.ingestion.base_source import FeedSource
from news_aggregator.ingestion.schemas import Item

HEADLINES = [
    ("Bitcoin climbs above key resistance as ETF inflows accelerate",
     "Spot bitcoin funds recorded their strongest week of inflows this quarter."),
    ("Central bank holds rates steady, signals patience on cuts",
     "Policymakers cited sticky services inflation in their statement."),
    ("Chipmaker unveils next-generation AI accelerator",
     "The new part doubles memory bandwidth for large model training."),
    ("Parliament passes sweeping data privacy bill",
     "The legislation introduces fines of up to four percent of revenue."),
    ("Ethereum developers schedule next network upgrade",
     "The fork targets lower fees for rollups and blob transactions."),
    ("Researchers report progress on solid-state battery density",
     "Lab cells retained 90 percent capacity after 1,000 cycles."),
    ("Retail sales beat expectations in holiday quarter",
     "Online spending rose faster than in-store purchases."),
    ("Health agency approves new once-weekly diabetes drug",
     "Trials showed better glucose control than daily injections."),
    ("Streaming service raises prices across all plans",
     "Subscribers will see the increase on their next billing cycle."),
    ("Championship final draws record global audience",
     "Broadcasters reported peak viewership above 400 million."),
    ("Stablecoin issuer publishes quarterly reserve attestation",
     "Reserves are held mostly in short-dated treasury bills."),
    ("Cloud provider suffers multi-region outage",
     "Several popular apps were unavailable for around two hours."),
]


class MockSource(FeedSource):
    """
    Mock source that returns synthetic items.

    Two instances with the same pool but different names emit items with
    different origin ids and identical fingerprints, mirroring the same
    story being syndicated by several providers.
    """

    def __init__(
        self,
        name: str = "mock",
        items_per_fetch: int = 5,
        seed: int | None = None,
    ):
        super().__init__()
        self._name = name
        self._items_per_fetch = items_per_fetch
        self._random = random.Random(seed)

    @property
    def name(self) -> str:
        return self._name

    async def _fetch_raw(self, limit: int) -> list[dict[str, Any]]:
        count = min(limit, self._items_per_fetch, len(HEADLINES))
        now = datetime.now(timezone.utc)

        records = []
        for index in self._random.sample(range(len(HEADLINES)), count):
            title, body = HEADLINES[index]
            records.append({
                "id": f"{self._name}_{index}",
                "title": title,
                "body": body,
                "published_at": now - timedelta(minutes=self._random.randint(0, 120)),
            })
        return records

    def _transform(self, raw: dict[str, Any]) -> Item | None:
        return Item(
            id=raw["id"],
            title=raw["title"],
            body=raw["body"],
            url=f"https://example.com/{self._name}/{raw['id']}",
            source=self.name,
            published_at=raw["published_at"],
            metadata={"generator": "mock"},
        )


def create_mock_sources(items_per_fetch: int = 5) -> list[FeedSource]:
    """Create a pair of overlapping mock sources."""
    return [
        MockSource(name="mock_wire", items_per_fetch=items_per_fetch),
        MockSource(name="mock_blog", items_per_fetch=items_per_fetch),
    ]
