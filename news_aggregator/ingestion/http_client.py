"""
HTTP infrastructure for feed sources and transports.

Provides:
- APIKeyRotator: Round-robin rotation for comma-separated API keys
- APIKeyAuth: Where to place a rotated key (header or query parameter)
- RetryConfig: Exponential backoff configuration
- HTTPClient: Async HTTP client with automatic retry

Retry lives here, below the feed sources. The fetch coordinator never
retries a source; a source that exhausts its retries simply fails for
the cycle.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_EXCEPTIONS = (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)


@dataclass
class APIKeyRotator:
    """
    Round-robin API key rotation.

    Example:
        rotator = APIKeyRotator.from_env_var("key1,key2,key3")
        key = await rotator.get_key()
    """

    keys: list[str]
    _current_index: int = field(default=0, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @classmethod
    def from_env_var(cls, value: str | None) -> "APIKeyRotator | None":
        """
        Create rotator from a comma-separated value.

        Returns:
            APIKeyRotator instance or None if no keys provided
        """
        if not value:
            return None

        keys = [k.strip() for k in value.split(",") if k.strip()]
        if not keys:
            return None

        return cls(keys=keys)

    async def get_key(self) -> str:
        """Get the next API key in round-robin rotation."""
        async with self._lock:
            key = self.keys[self._current_index]
            self._current_index = (self._current_index + 1) % len(self.keys)
            return key

    @property
    def key_count(self) -> int:
        return len(self.keys)


@dataclass
class APIKeyAuth:
    """Placement of a rotated API key on each request."""

    rotator: APIKeyRotator
    header: str | None = None
    param: str | None = None
    prefix: str = ""

    async def apply(self, headers: dict[str, str], params: dict[str, Any]) -> None:
        key = await self.rotator.get_key()
        if self.header:
            headers[self.header] = f"{self.prefix}{key}"
        elif self.param:
            params[self.param] = key


@dataclass
class RetryConfig:
    """
    Exponential backoff configuration for HTTP retries.

    Formula: min(max_backoff, base_delay * 2^attempt) * (1 + random(0, jitter_factor))
    """

    max_retries: int = 3
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1

    def calculate_backoff(self, attempt: int) -> float:
        """
        Calculate backoff duration for a given retry attempt.

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Backoff duration in seconds with jitter applied
        """
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay + delay * self.jitter_factor * random.random()

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in RETRYABLE_STATUS_CODES


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(HTTPClientError):
    """Raised when rate limit is hit and all retries exhausted."""


class HTTPClient:
    """
    Async HTTP client with retry logic.

    Retries on 429/5xx responses and on timeout, connect and read errors,
    rotating the API key (when an ``APIKeyAuth`` is given) on every attempt.

    Example:
        async with HTTPClient(RetryConfig(max_retries=2)) as client:
            response = await client.get(
                "https://api.example.com/data",
                params={"q": "search"},
                auth=APIKeyAuth(rotator, header="X-Api-Key"),
            )
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
    ):
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        auth: APIKeyAuth | None = None,
    ) -> httpx.Response:
        """
        Perform GET request with retry logic.

        Raises:
            HTTPClientError: On non-retryable errors or after retries exhausted
            RateLimitError: When rate limited and retries exhausted
        """
        return await self.request("GET", url, params=params, headers=headers, auth=auth)

    async def post(
        self,
        url: str,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        auth: APIKeyAuth | None = None,
    ) -> httpx.Response:
        """Perform POST request with retry logic."""
        return await self.request(
            "POST", url, json_body=json_body, headers=headers, auth=auth
        )

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        auth: APIKeyAuth | None = None,
    ) -> httpx.Response:
        """Execute an HTTP request, backing off between retryable failures."""
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        attempts = self.retry_config.max_retries + 1

        for attempt in range(attempts):
            request_headers = dict(headers or {})
            request_params = dict(params or {})
            if auth is not None:
                await auth.apply(request_headers, request_params)

            try:
                response = await self._client.request(
                    method,
                    url,
                    params=request_params or None,
                    headers=request_headers or None,
                    json=json_body,
                )
            except RETRYABLE_EXCEPTIONS as e:
                if attempt < attempts - 1:
                    await self._backoff(attempt, url, type(e).__name__)
                    continue
                raise HTTPClientError(
                    f"Request to {url} failed after {attempt + 1} attempts: {e}"
                ) from e

            if self.retry_config.is_retryable_status(response.status_code):
                if attempt < attempts - 1:
                    await self._backoff(attempt, url, f"status {response.status_code}")
                    continue

                error_cls = RateLimitError if response.status_code == 429 else HTTPClientError
                raise error_cls(
                    f"Request to {url} failed with status {response.status_code} "
                    f"after {attempt + 1} attempts",
                    status_code=response.status_code,
                    response_body=response.text,
                )

            if response.status_code >= 400:
                raise HTTPClientError(
                    f"Request to {url} failed with status {response.status_code}",
                    status_code=response.status_code,
                    response_body=response.text,
                )

            return response

        # Unreachable: the final attempt always returns or raises
        raise HTTPClientError(f"Request to {url} failed after {attempts} attempts")

    async def _backoff(self, attempt: int, url: str, reason: str) -> None:
        delay = self.retry_config.calculate_backoff(attempt)
        logger.warning(
            f"Retryable {reason} from {url}, "
            f"attempt {attempt + 1}/{self.retry_config.max_retries + 1}, "
            f"backing off {delay:.2f}s"
        )
        await asyncio.sleep(delay)
