"""Settings-driven wiring for the aggregation pipeline."""

import asyncio

import structlog

from news_aggregator.alerts.channels import (
    ConsoleChannel,
    NotificationChannel,
    TelegramChannel,
    WebhookChannel,
)
from news_aggregator.alerts.dispatcher import AlertDispatcher
from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.classification.base import Classifier
from news_aggregator.classification.keyword_classifier import KeywordClassifier
from news_aggregator.classification.openai_classifier import OpenAIClassifier
from news_aggregator.config.settings import Settings, get_settings
from news_aggregator.ingestion.base_source import FeedSource
from news_aggregator.ingestion.coordinator import FetchCoordinator
from news_aggregator.ingestion.cryptopanic_source import CryptoPanicSource
from news_aggregator.ingestion.deduplication import DedupCache
from news_aggregator.ingestion.http_client import APIKeyRotator, RetryConfig
from news_aggregator.ingestion.mock_source import create_mock_sources
from news_aggregator.ingestion.newsapi_source import NewsAPISource
from news_aggregator.ingestion.treenews_source import TreeNewsSource
from news_aggregator.services.aggregation_service import AggregationService

logger = structlog.get_logger(__name__)


def build_sources(settings: Settings, use_mock: bool = False) -> list[FeedSource]:
    """Create feed sources based on available configuration."""
    if use_mock:
        return create_mock_sources(items_per_fetch=settings.batch_size)

    retry_config = RetryConfig(
        max_retries=settings.max_http_retries,
        max_backoff_seconds=settings.max_backoff_seconds,
    )
    sources: list[FeedSource] = []

    if settings.newsapi_configured:
        rotator = APIKeyRotator.from_env_var(settings.newsapi_api_keys)
        sources.append(
            NewsAPISource(
                api_keys=rotator,
                retry_config=retry_config,
                timeout=settings.source_timeout_seconds,
            )
        )
        logger.info("NewsAPI source enabled", keys=rotator.key_count)

    if settings.cryptopanic_configured:
        sources.append(
            CryptoPanicSource(
                api_key=settings.cryptopanic_api_key,
                retry_config=retry_config,
                timeout=settings.source_timeout_seconds,
            )
        )
        logger.info("CryptoPanic source enabled")

    if settings.treenews_enabled:
        sources.append(
            TreeNewsSource(
                retry_config=retry_config,
                timeout=settings.source_timeout_seconds,
            )
        )
        logger.info("TreeNews source enabled")

    if not sources:
        logger.warning("No feed sources configured, using mock sources")
        return create_mock_sources(items_per_fetch=settings.batch_size)

    return sources


def build_classifier(settings: Settings, use_mock: bool = False) -> Classifier:
    """OpenAI when a key is configured, otherwise the keyword classifier."""
    if not use_mock and settings.classifier_configured:
        return OpenAIClassifier(api_key=settings.openai_api_key)
    logger.warning("OpenAI classifier not configured, using keyword classifier")
    return KeywordClassifier()


def build_channel(settings: Settings, use_mock: bool = False) -> NotificationChannel:
    """Telegram, then webhook, then console."""
    if use_mock:
        return ConsoleChannel()
    if settings.telegram_configured:
        return TelegramChannel(bot_token=settings.telegram_bot_token)
    if settings.alert_webhook_url:
        return WebhookChannel(url=settings.alert_webhook_url)
    logger.warning("No alert transport configured, alerts will be logged only")
    return ConsoleChannel()


def build_service(
    settings: Settings | None = None,
    use_mock: bool = False,
    rules: AlertRuleRepository | None = None,
    shutdown: asyncio.Event | None = None,
) -> AggregationService:
    """
    Assemble a ready-to-start AggregationService.

    Args:
        settings: Application settings (default: get_settings())
        use_mock: Use mock sources, keyword classifier and console alerts
        rules: Rule store to share with the API (created if omitted)
        shutdown: Shared shutdown signal

    Returns:
        Configured service; call ``start()`` to run it
    """
    settings = settings or get_settings()

    coordinator = FetchCoordinator(
        build_sources(settings, use_mock=use_mock),
        timeout=settings.source_timeout_seconds,
    )
    cache = DedupCache(
        retention=settings.cache_retention,
        sweep_interval=settings.cache_sweep_interval_seconds,
    )
    dispatcher = AlertDispatcher(build_channel(settings, use_mock=use_mock))

    return AggregationService(
        coordinator=coordinator,
        cache=cache,
        classifier=build_classifier(settings, use_mock=use_mock),
        rules=rules if rules is not None else AlertRuleRepository(),
        dispatcher=dispatcher,
        poll_interval=settings.poll_interval_seconds,
        batch_size=settings.batch_size,
        shutdown_grace=settings.shutdown_grace_seconds,
        shutdown=shutdown,
    )
