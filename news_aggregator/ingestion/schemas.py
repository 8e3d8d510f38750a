"""
Canonical item schema for the aggregation pipeline.

Every feed source MUST output ``Item`` instances. Items are immutable value
objects: the classifier produces new ``EnrichedItem`` copies instead of
mutating what the sources returned.
"""

import hashlib
import re
import unicodedata
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_text(text: str) -> str:
    """
    Normalize text for fingerprinting.

    NFKC-folds unicode, lowercases, strips punctuation and collapses
    whitespace, so trivial formatting differences between publishers
    do not defeat deduplication.
    """
    text = unicodedata.normalize("NFKC", text or "").lower()
    text = _PUNCTUATION.sub(" ", text)
    return " ".join(text.split())


def compute_fingerprint(title: str, body: str = "") -> str:
    """
    Compute the dedup key for an item.

    SHA-256 over the normalized title, plus the normalized body when the
    body carries anything beyond the title. Headline-only feeds repeat the
    title as the body, so they fingerprint on the title alone.

    Args:
        title: Item title
        body: Item body (may be empty)

    Returns:
        64-character hex digest
    """
    norm_title = normalize_text(title)
    norm_body = normalize_text(body)

    content = norm_title
    if norm_body and norm_body != norm_title:
        content = f"{norm_title}\n{norm_body}"

    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class Item(BaseModel):
    """
    A unit of ingested content.

    Identifier fields are set by the source. ``fingerprint`` is derived from
    title and body when the source does not supply one. Enrichment fields
    stay empty until the classifier fills them in on an ``EnrichedItem``.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    id: str = Field(..., min_length=1, description="Origin-assigned identifier")
    title: str = Field(..., min_length=1)
    body: str = Field(default="", description="Description or content text")
    url: str = Field(default="", description="Canonical URL")
    source: str = Field(..., min_length=1, description="Name of the feed source")
    published_at: datetime = Field(default_factory=_utc_now)

    fingerprint: str = Field(
        default="",
        description="Dedup key: digest over normalized title (+body)",
    )
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Origin-specific extras",
    )

    # Set by the classifier
    category: str = ""
    tags: tuple[str, ...] = ()
    sentiment: str = ""
    summary: str = ""

    @model_validator(mode="before")
    @classmethod
    def derive_fingerprint(cls, data: Any) -> Any:
        """Fill in the fingerprint from title/body when not provided."""
        if isinstance(data, dict) and not data.get("fingerprint"):
            data = dict(data)
            data["fingerprint"] = compute_fingerprint(
                data.get("title") or "", data.get("body") or ""
            )
        return data

    @field_validator("title", "body")
    @classmethod
    def clean_whitespace(cls, v: str) -> str:
        return " ".join(v.split())

    @field_validator("metadata", mode="before")
    @classmethod
    def drop_empty_metadata(cls, v: Any) -> Any:
        """Keep only non-empty string values."""
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items() if val not in (None, "")}
        return v

    @field_validator("published_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def text(self) -> str:
        """Title and body joined, as used for keyword matching."""
        return f"{self.title} {self.body}"

    def enrich(
        self,
        category: str,
        tags: list[str] | tuple[str, ...] = (),
        sentiment: str = "",
        summary: str = "",
        confidence: float = 0.0,
        enriched_at: datetime | None = None,
    ) -> "EnrichedItem":
        """
        Build an EnrichedItem copy carrying classification metadata.

        The receiver is left untouched.
        """
        data = self.model_dump(
            exclude={
                "category", "tags", "sentiment", "summary",
                "confidence", "enriched_at",
            }
        )
        return EnrichedItem(
            **data,
            category=category,
            tags=tuple(tags),
            sentiment=sentiment,
            summary=summary,
            confidence=confidence,
            enriched_at=enriched_at or _utc_now(),
        )


class EnrichedItem(Item):
    """An Item plus classifier confidence and enrichment timestamp."""

    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    enriched_at: datetime = Field(default_factory=_utc_now)

    @field_validator("category", "sentiment")
    @classmethod
    def lower_label(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        """Strip tags and drop empty or repeated ones."""
        if isinstance(v, (list, tuple)):
            tags: list[str] = []
            for tag in v:
                t = str(tag).strip()
                if t and t.lower() not in {x.lower() for x in tags}:
                    tags.append(t)
            return tuple(tags)
        return v

    @property
    def confidence_percent(self) -> float:
        return self.confidence * 100
