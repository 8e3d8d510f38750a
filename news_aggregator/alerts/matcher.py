"""Stateless rule matching.

Pure functions with no I/O: given an enriched item and a list of rules,
decide which subscribers should be alerted. Matching is a union over the
rule's categories, keywords and tags, so clause order only affects how
early evaluation short-circuits, never the result.
"""

from collections.abc import Iterable

from news_aggregator.alerts.schemas import AlertRule
from news_aggregator.ingestion.schemas import Item


def matches_category(item: Item, rule: AlertRule) -> bool:
    """Case-insensitive equality between the item category and any rule category."""
    if not item.category:
        return False
    category = item.category.casefold()
    return any(c.casefold() == category for c in rule.categories)


def matches_keyword(item: Item, rule: AlertRule) -> bool:
    """Any rule keyword appearing as a substring of title + body (case-insensitive)."""
    if not rule.keywords:
        return False
    text = item.text.casefold()
    return any(k.casefold() in text for k in rule.keywords)


def matches_tag(item: Item, rule: AlertRule) -> bool:
    """Case-insensitive equality between any item tag and any rule tag."""
    if not item.tags or not rule.tags:
        return False
    item_tags = {t.casefold() for t in item.tags}
    return any(t.casefold() in item_tags for t in rule.tags)


def rule_matches(item: Item, rule: AlertRule) -> bool:
    """Check one rule against one item.

    Disabled and empty rules never match.
    """
    if not rule.enabled or rule.is_empty:
        return False
    return (
        matches_category(item, rule)
        or matches_keyword(item, rule)
        or matches_tag(item, rule)
    )


def match(item: Item, rules: Iterable[AlertRule]) -> list[str]:
    """Return the subscribers whose rule matches ``item``.

    Each subscriber appears at most once, in rule order.
    """
    subscribers: list[str] = []
    seen: set[str] = set()
    for rule in rules:
        if rule.subscriber_id in seen:
            continue
        if rule_matches(item, rule):
            seen.add(rule.subscriber_id)
            subscribers.append(rule.subscriber_id)
    return subscribers
