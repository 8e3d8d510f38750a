"""Tests for settings-driven pipeline wiring."""

from pydantic import SecretStr

from news_aggregator.alerts.channels import ConsoleChannel, TelegramChannel, WebhookChannel
from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.classification.keyword_classifier import KeywordClassifier
from news_aggregator.classification.openai_classifier import OpenAIClassifier
from news_aggregator.config.settings import Settings
from news_aggregator.ingestion.cryptopanic_source import CryptoPanicSource
from news_aggregator.ingestion.mock_source import MockSource
from news_aggregator.ingestion.newsapi_source import NewsAPISource
from news_aggregator.ingestion.treenews_source import TreeNewsSource
from news_aggregator.services.aggregation_service import AggregationService
from news_aggregator.services.factory import (
    build_channel,
    build_classifier,
    build_service,
    build_sources,
)


class TestBuildSources:
    def test_configured_sources(self):
        settings = Settings(
            newsapi_api_keys="k1,k2",
            cryptopanic_api_key="cp",
            treenews_enabled=True,
        )

        sources = build_sources(settings)

        assert [type(s) for s in sources] == [NewsAPISource, CryptoPanicSource, TreeNewsSource]

    def test_falls_back_to_mock(self, test_settings):
        sources = build_sources(test_settings)
        assert sources and all(isinstance(s, MockSource) for s in sources)

    def test_mock_flag_overrides(self):
        settings = Settings(newsapi_api_keys="k1")
        assert all(isinstance(s, MockSource) for s in build_sources(settings, use_mock=True))


class TestBuildClassifier:
    def test_openai_when_key_present(self):
        settings = Settings(openai_api_key=SecretStr("sk-test"))
        assert isinstance(build_classifier(settings), OpenAIClassifier)

    def test_keyword_without_key(self, test_settings):
        assert isinstance(build_classifier(test_settings), KeywordClassifier)

    def test_keyword_in_mock_mode(self):
        settings = Settings(openai_api_key=SecretStr("sk-test"))
        assert isinstance(build_classifier(settings, use_mock=True), KeywordClassifier)


class TestBuildChannel:
    def test_telegram_preferred(self):
        settings = Settings(
            telegram_bot_token=SecretStr("123:abc"),
            alert_webhook_url="https://hooks.example.com",
        )
        assert isinstance(build_channel(settings), TelegramChannel)

    def test_webhook(self):
        settings = Settings(alert_webhook_url="https://hooks.example.com")
        assert isinstance(build_channel(settings), WebhookChannel)

    def test_console_fallback(self, test_settings):
        assert isinstance(build_channel(test_settings), ConsoleChannel)


class TestBuildService:
    def test_shares_rule_store(self, test_settings):
        rules = AlertRuleRepository()

        service = build_service(test_settings, use_mock=True, rules=rules)

        assert isinstance(service, AggregationService)
        assert service._rules is rules
        assert service.cache.retention == test_settings.cache_retention
