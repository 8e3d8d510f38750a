"""OpenAI-backed batch classifier.

Sends one chat completion per batch in JSON mode and validates the reply
against ``CategorizationResponse``. Any transport, parse or validation
failure fails the whole batch.

The SDK import is deferred to first use so the package imports cleanly
when no API key is configured.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import SecretStr, ValidationError

from news_aggregator.classification.base import Classifier
from news_aggregator.classification.config import ClassifierConfig
from news_aggregator.classification.prompts import (
    ARTICLE_TEMPLATE,
    CATEGORIES,
    CATEGORIZATION_PROMPT,
    SENTIMENTS,
    SYSTEM_PROMPT,
)
from news_aggregator.classification.schemas import CategorizationResponse
from news_aggregator.errors import ClassificationError
from news_aggregator.ingestion.schemas import EnrichedItem, Item

logger = logging.getLogger(__name__)


class OpenAIClassifier(Classifier):
    """Categorizes items with an OpenAI chat model.

    Args:
        api_key: OpenAI API key.
        config: Model and filtering configuration.
        client: Pre-built async client (tests inject a mock here).
    """

    def __init__(
        self,
        api_key: SecretStr | str | None = None,
        config: ClassifierConfig | None = None,
        client: Any | None = None,
    ) -> None:
        self._api_key = api_key
        self._config = config or ClassifierConfig()
        self._client = client

    def _get_client(self) -> Any:
        """Lazy-initialize OpenAI async client."""
        if self._client is None:
            import openai

            key = self._api_key
            key_str = key.get_secret_value() if isinstance(key, SecretStr) else key
            self._client = openai.AsyncOpenAI(
                api_key=key_str,
                timeout=self._config.timeout,
            )
        return self._client

    def build_prompt(self, items: list[Item]) -> str:
        """Render the categorization prompt for a batch."""
        articles = "\n".join(
            ARTICLE_TEMPLATE.format(
                index=i,
                title=item.title,
                body=item.body,
                source=item.source,
            )
            for i, item in enumerate(items, start=1)
        )
        return CATEGORIZATION_PROMPT.format(
            categories=", ".join(CATEGORIES),
            sentiments=", ".join(SENTIMENTS),
            max_tags=self._config.max_tags,
            articles=articles,
        )

    async def classify(self, items: list[Item]) -> list[EnrichedItem]:
        if not items:
            return []

        prompt = self.build_prompt(items)
        try:
            client = self._get_client()
            response = await client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise ClassificationError(f"openai request failed: {e}") from e

        if not response.choices:
            raise ClassificationError("no response from openai")

        raw = response.choices[0].message.content
        return self._parse_response(raw, items)

    def _parse_response(self, raw: str | None, items: list[Item]) -> list[EnrichedItem]:
        """Map validated model output back onto the input items."""
        if not raw:
            raise ClassificationError("empty response from openai")

        try:
            parsed = CategorizationResponse.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ClassificationError(f"failed to parse openai response: {e}") from e

        # Prompt IDs are 1-based batch positions
        by_index = {str(i): item for i, item in enumerate(items, start=1)}
        now = datetime.now(timezone.utc)
        enriched: list[EnrichedItem] = []

        for entry in parsed.articles:
            item = by_index.pop(entry.id, None)
            if item is None:
                logger.warning("Classifier returned unknown or repeated id %s", entry.id)
                continue
            if entry.confidence < self._config.min_confidence:
                logger.debug(
                    "Dropping %s: confidence %.2f below %.2f",
                    item.id, entry.confidence, self._config.min_confidence,
                )
                continue
            if entry.category not in CATEGORIES:
                logger.debug("Classifier used unlisted category %r for %s", entry.category, item.id)

            enriched.append(
                item.enrich(
                    category=entry.category,
                    tags=entry.tags[: self._config.max_tags],
                    sentiment=entry.sentiment,
                    summary=entry.summary,
                    confidence=entry.confidence,
                    enriched_at=now,
                )
            )

        return enriched
