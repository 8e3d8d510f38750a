"""In-memory alert rule store.

Holds one rule per subscriber. Mutation is owned by the subscriber-facing
side (API routes, bots); the pipeline only reads via ``list_rules()``.
All operations take the same lock so a match never observes a
half-replaced rule set.
"""

import asyncio
import logging
from typing import Protocol

from news_aggregator.alerts.schemas import AlertRule

logger = logging.getLogger(__name__)


class RuleProvider(Protocol):
    """Read-only view of the rule store consumed by the pipeline."""

    async def list_rules(self) -> list[AlertRule]: ...


class AlertRuleRepository:
    """Process-lifetime store of subscriber alert rules."""

    def __init__(self, rules: list[AlertRule] | None = None) -> None:
        self._rules: dict[str, AlertRule] = {
            rule.subscriber_id: rule for rule in rules or []
        }
        self._lock = asyncio.Lock()

    async def set_rule(self, rule: AlertRule) -> AlertRule:
        """Create or wholesale-replace the subscriber's rule.

        Args:
            rule: New rule for ``rule.subscriber_id``.

        Returns:
            The stored rule.
        """
        async with self._lock:
            replaced = rule.subscriber_id in self._rules
            self._rules[rule.subscriber_id] = rule
        logger.info(
            "%s alert rule for subscriber %s",
            "Replaced" if replaced else "Created",
            rule.subscriber_id,
        )
        return rule

    async def get_rule(self, subscriber_id: str) -> AlertRule | None:
        async with self._lock:
            return self._rules.get(subscriber_id)

    async def delete_rule(self, subscriber_id: str) -> bool:
        """Remove a subscriber's rule. Returns False if none existed."""
        async with self._lock:
            removed = self._rules.pop(subscriber_id, None) is not None
        if removed:
            logger.info("Deleted alert rule for subscriber %s", subscriber_id)
        return removed

    async def list_rules(self) -> list[AlertRule]:
        """Snapshot of all rules (enabled and disabled)."""
        async with self._lock:
            return list(self._rules.values())

    async def count(self) -> int:
        async with self._lock:
            return len(self._rules)
