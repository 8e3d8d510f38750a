"""Schema definitions for subscriber alert rules.

A rule belongs to exactly one subscriber and is OR-combined across its
three criteria sets: any category, keyword or tag hit qualifies an item.
Rules are replaced wholesale; there is no partial-field update.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

RULE_SPEC_KEYS: dict[str, str] = {
    "category": "categories",
    "categories": "categories",
    "keyword": "keywords",
    "keywords": "keywords",
    "tag": "tags",
    "tags": "tags",
}


def _clean(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class AlertRule:
    """A subscriber's interest rule.

    Attributes:
        subscriber_id: Owner of the rule (a chat id for Telegram delivery).
        categories: Category labels, compared case-insensitively.
        keywords: Substrings searched for in title + body, case-insensitively.
        tags: Tag labels, compared case-insensitively.
        enabled: Disabled rules never match.
    """

    subscriber_id: str
    categories: frozenset[str] = field(default_factory=frozenset)
    keywords: frozenset[str] = field(default_factory=frozenset)
    tags: frozenset[str] = field(default_factory=frozenset)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.subscriber_id or not str(self.subscriber_id).strip():
            raise ValueError("subscriber_id must be non-empty")
        # Accept any iterable of strings; store trimmed frozensets
        object.__setattr__(self, "subscriber_id", str(self.subscriber_id).strip())
        object.__setattr__(self, "categories", _clean(self.categories))
        object.__setattr__(self, "keywords", _clean(self.keywords))
        object.__setattr__(self, "tags", _clean(self.tags))

    @property
    def is_empty(self) -> bool:
        """A rule with no criteria never matches."""
        return not (self.categories or self.keywords or self.tags)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "subscriber_id": self.subscriber_id,
            "categories": sorted(self.categories),
            "keywords": sorted(self.keywords),
            "tags": sorted(self.tags),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertRule":
        return cls(
            subscriber_id=data["subscriber_id"],
            categories=data.get("categories") or (),
            keywords=data.get("keywords") or (),
            tags=data.get("tags") or (),
            enabled=data.get("enabled", True),
        )

    @classmethod
    def from_spec(cls, subscriber_id: str, spec: str) -> "AlertRule":
        """Parse the ``key=value`` rule syntax used by the bot's /alert command.

        Example:
            AlertRule.from_spec("42", "category=politics keywords=bitcoin,crypto tags=ai")

        Values are comma-separated; repeated keys accumulate. Tokens without
        ``=`` are ignored.

        Raises:
            ValueError: On an unknown key or when no criteria are given.
        """
        collected: dict[str, list[str]] = {"categories": [], "keywords": [], "tags": []}

        for token in spec.split():
            if "=" not in token:
                continue
            key, value = token.split("=", 1)
            target = RULE_SPEC_KEYS.get(key.strip().lower())
            if target is None:
                raise ValueError(
                    f"Unknown rule key {key!r}. "
                    f"Must be one of: {sorted(set(RULE_SPEC_KEYS))}"
                )
            collected[target].extend(value.split(","))

        rule = cls(subscriber_id=subscriber_id, **collected)
        if rule.is_empty:
            raise ValueError("Rule needs at least one category, keyword or tag")
        return rule
