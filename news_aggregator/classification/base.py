"""Classifier interface consumed by the aggregation pipeline."""

from abc import ABC, abstractmethod

from news_aggregator.ingestion.schemas import EnrichedItem, Item


class Classifier(ABC):
    """
    Batch-in, batch-out enrichment.

    ``classify`` returns a subset of its input as EnrichedItems; items the
    classifier cannot confidently categorize may be left out. A failure of
    the whole call raises ClassificationError and nothing from the batch
    is used.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def classify(self, items: list[Item]) -> list[EnrichedItem]:
        """
        Classify a batch of items.

        Raises:
            ClassificationError: If the batch as a whole could not be classified
        """
        ...
