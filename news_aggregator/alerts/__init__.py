"""Alert routing - subscriber rules, matching and delivery.

Components:
- AlertRule: A subscriber's OR-combined categories/keywords/tags
- AlertRuleRepository: In-memory rule store; the pipeline reads list_rules()
- match / rule_matches: Stateless rule evaluation
- NotificationChannel / TelegramChannel / WebhookChannel / ConsoleChannel: Transports
- CircuitBreaker: Resilience wrapper for channels
- DispatchConfig / AlertDispatcher: Formatting and per-subscriber delivery
"""

from news_aggregator.alerts.channels import (
    CircuitBreaker,
    ConsoleChannel,
    NotificationChannel,
    TelegramChannel,
    WebhookChannel,
)
from news_aggregator.alerts.dispatcher import AlertDispatcher, DispatchConfig, format_alert
from news_aggregator.alerts.matcher import match, rule_matches
from news_aggregator.alerts.repository import AlertRuleRepository, RuleProvider
from news_aggregator.alerts.schemas import AlertRule

__all__ = [
    "AlertDispatcher",
    "AlertRule",
    "AlertRuleRepository",
    "CircuitBreaker",
    "ConsoleChannel",
    "DispatchConfig",
    "NotificationChannel",
    "RuleProvider",
    "TelegramChannel",
    "WebhookChannel",
    "format_alert",
    "match",
    "rule_matches",
]
