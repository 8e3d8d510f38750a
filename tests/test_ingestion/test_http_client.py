"""Tests for HTTP client infrastructure layer."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from news_aggregator.ingestion.http_client import (
    APIKeyAuth,
    APIKeyRotator,
    HTTPClient,
    HTTPClientError,
    RateLimitError,
    RetryConfig,
)

URL = "https://api.example.com/data"


def _fast_retry(max_retries: int = 3) -> RetryConfig:
    return RetryConfig(max_retries=max_retries, base_delay=0.0, jitter_factor=0.0)


class TestAPIKeyRotator:
    """Tests for APIKeyRotator."""

    def test_from_env_var_with_multiple_keys(self):
        """Should parse comma-separated keys."""
        rotator = APIKeyRotator.from_env_var("key1,key2,key3")

        assert rotator is not None
        assert rotator.keys == ["key1", "key2", "key3"]
        assert rotator.key_count == 3

    def test_from_env_var_strips_and_filters(self):
        rotator = APIKeyRotator.from_env_var("  key1 ,, key2 ,  ")
        assert rotator.keys == ["key1", "key2"]

    @pytest.mark.parametrize("value", [None, "", "   ", ",,"])
    def test_from_env_var_empty(self, value):
        assert APIKeyRotator.from_env_var(value) is None

    @pytest.mark.asyncio
    async def test_get_key_rotation(self):
        """Should rotate through keys in order and wrap around."""
        rotator = APIKeyRotator(keys=["x", "y", "z"])

        keys = [await rotator.get_key() for _ in range(4)]
        assert keys == ["x", "y", "z", "x"]


class TestAPIKeyAuth:
    """Tests for APIKeyAuth."""

    @pytest.mark.asyncio
    async def test_header_with_prefix(self):
        auth = APIKeyAuth(APIKeyRotator(keys=["k"]), header="Authorization", prefix="Bearer ")
        headers, params = {}, {}
        await auth.apply(headers, params)
        assert headers == {"Authorization": "Bearer k"}
        assert params == {}

    @pytest.mark.asyncio
    async def test_query_param(self):
        auth = APIKeyAuth(APIKeyRotator(keys=["k"]), param="auth_token")
        headers, params = {}, {}
        await auth.apply(headers, params)
        assert params == {"auth_token": "k"}
        assert headers == {}


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_exponential_backoff_without_jitter(self):
        config = RetryConfig(base_delay=1.0, jitter_factor=0.0)
        assert config.calculate_backoff(0) == 1.0
        assert config.calculate_backoff(1) == 2.0
        assert config.calculate_backoff(3) == 8.0

    def test_backoff_capped(self):
        config = RetryConfig(base_delay=1.0, max_backoff_seconds=5.0, jitter_factor=0.0)
        assert config.calculate_backoff(10) == 5.0

    def test_jitter_bounds(self):
        config = RetryConfig(base_delay=1.0, jitter_factor=0.1)
        for _ in range(20):
            assert 1.0 <= config.calculate_backoff(0) <= 1.1

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_status(self, status):
        assert RetryConfig().is_retryable_status(status) is True

    @pytest.mark.parametrize("status", [200, 400, 401, 403, 404])
    def test_non_retryable_status(self, status):
        assert RetryConfig().is_retryable_status(status) is False


class TestHTTPClient:
    """Tests for HTTPClient."""

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = HTTPClient()
        with pytest.raises(RuntimeError):
            await client.get(URL)

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_with_params(self):
        """Should include query parameters in GET request."""
        route = respx.get(URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        async with HTTPClient() as client:
            response = await client.get(URL, params={"q": "bitcoin", "pageSize": 10})

        assert response.json() == {"ok": True}
        request = route.calls.last.request
        assert request.url.params["q"] == "bitcoin"
        assert request.url.params["pageSize"] == "10"

    @pytest.mark.asyncio
    @respx.mock
    async def test_post_json_body(self):
        route = respx.post(URL).mock(return_value=httpx.Response(200, json={}))

        async with HTTPClient() as client:
            await client.post(URL, json_body={"chat_id": "1"})

        request = route.calls.last.request
        assert request.headers.get("content-type") == "application/json"
        assert json.loads(request.content) == {"chat_id": "1"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_key_rotates_on_retry(self):
        """Each attempt re-applies auth with the next key."""
        route = respx.get(URL).mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json={})]
        )
        auth = APIKeyAuth(APIKeyRotator(keys=["a", "b"]), header="X-Api-Key")

        async with HTTPClient(retry_config=_fast_retry()) as client:
            await client.get(URL, auth=auth)

        assert [c.request.headers["X-Api-Key"] for c in route.calls] == ["a", "b"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_retry_on_429_with_success(self):
        """Should retry on 429 and succeed on subsequent attempt."""
        route = respx.get(URL).mock(
            side_effect=[httpx.Response(429, text="Rate limited"), httpx.Response(200, json={})]
        )

        async with HTTPClient(retry_config=_fast_retry()) as client:
            response = await client.get(URL)

        assert response.status_code == 200
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_error_after_retries_exhausted(self):
        """Should raise RateLimitError after all retries fail with 429."""
        route = respx.get(URL).mock(return_value=httpx.Response(429, text="Rate limited"))

        async with HTTPClient(retry_config=_fast_retry(max_retries=2)) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.get(URL)

        assert exc_info.value.status_code == 429
        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_after_retries_exhausted(self):
        """Should raise HTTPClientError after all retries fail with 5xx."""
        respx.get(URL).mock(return_value=httpx.Response(503, text="Service unavailable"))

        async with HTTPClient(retry_config=_fast_retry(max_retries=1)) as client:
            with pytest.raises(HTTPClientError) as exc_info:
                await client.get(URL)

        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 503
        assert "failed with status 503" in str(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_retry_on_4xx(self):
        """Should not retry on non-429 4xx errors."""
        route = respx.get(URL).mock(return_value=httpx.Response(401, text="Unauthorized"))

        async with HTTPClient(retry_config=_fast_retry()) as client:
            with pytest.raises(HTTPClientError) as exc_info:
                await client.get(URL)

        assert exc_info.value.status_code == 401
        assert exc_info.value.response_body == "Unauthorized"
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_retry_on_timeout_then_fail(self):
        route = respx.get(URL).mock(side_effect=httpx.ReadTimeout("slow"))

        async with HTTPClient(retry_config=_fast_retry(max_retries=2)) as client:
            with pytest.raises(HTTPClientError, match="after 3 attempts"):
                await client.get(URL)

        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_backoff_sleeps_between_attempts(self):
        respx.get(URL).mock(
            side_effect=[httpx.Response(500), httpx.Response(500), httpx.Response(200)]
        )
        config = RetryConfig(max_retries=3, base_delay=1.0, jitter_factor=0.0)

        with patch(
            "news_aggregator.ingestion.http_client.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            async with HTTPClient(retry_config=config) as client:
                await client.get(URL)

        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]
