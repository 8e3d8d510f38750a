"""Tests for feed sources: payload mapping and failure conversion."""

from datetime import datetime, timezone

import httpx
import pytest
import respx

from news_aggregator.errors import SourceFetchError
from news_aggregator.ingestion.base_source import clean_text, parse_iso_timestamp
from news_aggregator.ingestion.cryptopanic_source import CRYPTOPANIC_POSTS_URL, CryptoPanicSource
from news_aggregator.ingestion.http_client import APIKeyRotator, RetryConfig
from news_aggregator.ingestion.mock_source import MockSource, create_mock_sources
from news_aggregator.ingestion.newsapi_source import NEWSAPI_HEADLINES_URL, NewsAPISource
from news_aggregator.ingestion.treenews_source import TREENEWS_URL, TreeNewsSource

NO_RETRY = RetryConfig(max_retries=0, base_delay=0.0, jitter_factor=0.0)


def _newsapi_article(**overrides) -> dict:
    article = {
        "source": {"id": "reuters", "name": "Reuters"},
        "author": "Jane Reporter",
        "title": "Central bank holds rates steady",
        "description": "Policymakers cited sticky inflation.",
        "url": "https://example.com/rates",
        "urlToImage": None,
        "publishedAt": "2026-03-01T12:00:00Z",
        "content": "Full content here...",
    }
    article.update(overrides)
    return article


# ── Helpers ─────────────────────────────────────────────


class TestHelpers:
    def test_clean_text(self):
        assert clean_text("  a\x00b \n c ") == "ab c"
        assert clean_text(None) == ""

    def test_parse_iso_timestamp_z_suffix(self):
        assert parse_iso_timestamp("2026-03-01T12:00:00Z") == datetime(
            2026, 3, 1, 12, 0, tzinfo=timezone.utc
        )

    def test_parse_iso_timestamp_fallback(self):
        before = datetime.now(timezone.utc)
        assert parse_iso_timestamp("not a date") >= before
        assert parse_iso_timestamp(None) >= before


# ── NewsAPI ─────────────────────────────────────────────


class TestNewsAPISource:
    def _source(self, keys=("k1",)) -> NewsAPISource:
        return NewsAPISource(api_keys=APIKeyRotator(keys=list(keys)), retry_config=NO_RETRY)

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_maps_articles(self):
        route = respx.get(NEWSAPI_HEADLINES_URL).mock(
            return_value=httpx.Response(
                200, json={"status": "ok", "articles": [_newsapi_article()]}
            )
        )

        items = await self._source().fetch(limit=10)

        assert len(items) == 1
        item = items[0]
        assert item.id == "newsapi_https://example.com/rates"
        assert item.title == "Central bank holds rates steady"
        assert item.body == "Policymakers cited sticky inflation."
        assert item.source == "newsapi"
        assert item.published_at == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert item.metadata == {
            "author": "Jane Reporter",
            "source_name": "Reuters",
            "source_id": "reuters",
        }

        request = route.calls.last.request
        assert request.headers["X-Api-Key"] == "k1"
        assert request.url.params["pageSize"] == "10"
        assert request.url.params["language"] == "en"

    @pytest.mark.asyncio
    @respx.mock
    async def test_skips_removed_and_incomplete(self):
        respx.get(NEWSAPI_HEADLINES_URL).mock(
            return_value=httpx.Response(200, json={"status": "ok", "articles": [
                _newsapi_article(title="[Removed]"),
                _newsapi_article(url=None),
                _newsapi_article(title=None),
                _newsapi_article(description=None, url="https://example.com/2"),
            ]})
        )

        source = self._source()
        items = await source.fetch(limit=10)

        assert len(items) == 1
        assert items[0].body == "Full content here..."
        assert source.stats.items_filtered == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_caps_at_limit(self):
        articles = [_newsapi_article(url=f"https://example.com/{i}", title=f"T{i}") for i in range(5)]
        respx.get(NEWSAPI_HEADLINES_URL).mock(
            return_value=httpx.Response(200, json={"status": "ok", "articles": articles})
        )

        items = await self._source().fetch(limit=2)
        assert [i.title for i in items] == ["T0", "T1"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_raises_source_error(self):
        respx.get(NEWSAPI_HEADLINES_URL).mock(
            return_value=httpx.Response(200, json={"status": "error", "code": "apiKeyInvalid"})
        )

        with pytest.raises(SourceFetchError, match="apiKeyInvalid") as exc_info:
            await self._source().fetch(limit=10)
        assert exc_info.value.source == "newsapi"

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_raises_source_error(self):
        respx.get(NEWSAPI_HEADLINES_URL).mock(return_value=httpx.Response(401))

        with pytest.raises(SourceFetchError):
            await self._source().fetch(limit=10)


# ── CryptoPanic ─────────────────────────────────────────


class TestCryptoPanicSource:
    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_maps_posts(self):
        route = respx.get(CRYPTOPANIC_POSTS_URL).mock(
            return_value=httpx.Response(200, json={"results": [{
                "id": 4242,
                "title": "Ethereum upgrade scheduled",
                "url": "https://cryptopanic.com/news/4242",
                "published_at": "2026-03-01T08:30:00Z",
                "source": {"title": "CoinDesk"},
                "votes": {"positive": 7, "negative": 1},
            }]})
        )

        source = CryptoPanicSource(api_key="secret", retry_config=NO_RETRY)
        items = await source.fetch(limit=5)

        assert len(items) == 1
        item = items[0]
        assert item.id == "cryptopanic_4242"
        assert item.body == item.title
        assert item.metadata == {
            "source_name": "CoinDesk",
            "votes_positive": "7",
            "votes_negative": "1",
        }

        params = route.calls.last.request.url.params
        assert params["auth_token"] == "secret"
        assert params["public"] == "true"
        assert params["page_size"] == "5"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_results_raises_source_error(self):
        respx.get(CRYPTOPANIC_POSTS_URL).mock(
            return_value=httpx.Response(200, json={"detail": "Invalid token"})
        )

        source = CryptoPanicSource(api_key="bad", retry_config=NO_RETRY)
        with pytest.raises(SourceFetchError):
            await source.fetch(limit=5)


# ── TreeNews ────────────────────────────────────────────


class TestTreeNewsSource:
    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_maps_records(self):
        respx.get(TREENEWS_URL).mock(
            return_value=httpx.Response(200, json=[
                {
                    "_id": "abc123",
                    "title": "Exchange lists new token",
                    "url": "https://example.com/listing",
                    "time": 1772366400000,
                    "source": "Blogs",
                    "suggestions": [{"coin": "BTC"}, {"coin": "ETH"}, {}],
                },
                {"_id": "def456", "title": "Second", "time": 1772366400000},
                {"_id": "ghi789", "title": "Third", "time": 1772366400000},
            ])
        )

        items = await TreeNewsSource(retry_config=NO_RETRY).fetch(limit=2)

        assert [i.id for i in items] == ["abc123", "def456"]
        first = items[0]
        assert first.published_at == datetime.fromtimestamp(1772366400, tz=timezone.utc)
        assert first.metadata == {"source": "Blogs", "suggested_coins": "BTC,ETH"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_list_payload_raises_source_error(self):
        respx.get(TREENEWS_URL).mock(return_value=httpx.Response(200, json={"error": "x"}))

        with pytest.raises(SourceFetchError, match="non-list"):
            await TreeNewsSource(retry_config=NO_RETRY).fetch(limit=5)

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_record_skipped(self):
        respx.get(TREENEWS_URL).mock(
            return_value=httpx.Response(200, json=[
                {"title": "No id field", "time": 0},
                {"_id": "ok", "title": "Fine", "time": 0},
            ])
        )

        source = TreeNewsSource(retry_config=NO_RETRY)
        items = await source.fetch(limit=5)

        assert [i.id for i in items] == ["ok"]
        assert source.stats.errors == 1


# ── Mock ────────────────────────────────────────────────


class TestMockSource:
    @pytest.mark.asyncio
    async def test_respects_limit(self):
        items = await MockSource(items_per_fetch=5, seed=1).fetch(limit=3)
        assert len(items) == 3
        assert all(i.source == "mock" for i in items)

    @pytest.mark.asyncio
    async def test_seeded_is_deterministic(self):
        a = await MockSource(seed=7).fetch(limit=5)
        b = await MockSource(seed=7).fetch(limit=5)
        assert [i.fingerprint for i in a] == [i.fingerprint for i in b]

    def test_create_mock_sources(self):
        sources = create_mock_sources(items_per_fetch=2)
        assert [s.name for s in sources] == ["mock_wire", "mock_blog"]
