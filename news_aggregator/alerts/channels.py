"""Transport implementations for alert delivery.

Provides an ABC for notification channels plus concrete implementations
for Telegram, generic webhooks and the console. A CircuitBreaker decorator
wraps a channel to stop hammering a destination that keeps failing.

Channels report failure by returning False; they do not raise.
"""

import enum
import logging
import time
from abc import ABC, abstractmethod

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class NotificationChannel(ABC):
    """Abstract base for notification delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'telegram', 'webhook')."""

    @abstractmethod
    async def send(self, subscriber_id: str, text: str) -> bool:
        """Deliver rendered alert text to one subscriber.

        Args:
            subscriber_id: Recipient address on this transport.
            text: Rendered alert.

        Returns:
            True if delivery succeeded, False otherwise.
        """


class TelegramChannel(NotificationChannel):
    """Delivers alerts through the Telegram Bot API ``sendMessage`` method.

    The subscriber id is the Telegram chat id. Creates a new
    ``httpx.AsyncClient`` per call (short-lived, no pooling).
    """

    def __init__(
        self,
        bot_token: SecretStr | str,
        timeout: float = 10.0,
        api_url: str = TELEGRAM_API_URL,
    ) -> None:
        token = bot_token.get_secret_value() if isinstance(bot_token, SecretStr) else bot_token
        self._endpoint = f"{api_url}/bot{token}/sendMessage"
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "telegram"

    async def send(self, subscriber_id: str, text: str) -> bool:
        payload = {
            "chat_id": subscriber_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._endpoint, json=payload)
                if resp.is_success:
                    return True
                logger.warning(
                    "Telegram returned %d for chat %s: %s",
                    resp.status_code, subscriber_id, resp.text[:200],
                )
                return False
        except httpx.TimeoutException:
            logger.warning("Telegram send timed out for chat %s", subscriber_id)
            return False
        except Exception as e:
            logger.warning("Telegram send failed for chat %s: %s", subscriber_id, e)
            return False


class WebhookChannel(NotificationChannel):
    """Delivers alerts as JSON POST ``{"subscriber_id", "text"}`` to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "webhook"

    async def send(self, subscriber_id: str, text: str) -> bool:
        payload = {"subscriber_id": subscriber_id, "text": text}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=payload, headers=self._headers)
                if resp.is_success:
                    return True
                logger.warning(
                    "Webhook %s returned %d for subscriber %s",
                    self._url, resp.status_code, subscriber_id,
                )
                return False
        except httpx.TimeoutException:
            logger.warning("Webhook %s timed out for subscriber %s", self._url, subscriber_id)
            return False
        except Exception as e:
            logger.warning(
                "Webhook %s failed for subscriber %s: %s", self._url, subscriber_id, e,
            )
            return False


class ConsoleChannel(NotificationChannel):
    """Logs alerts instead of delivering them. For development and mock runs."""

    @property
    def name(self) -> str:
        return "console"

    async def send(self, subscriber_id: str, text: str) -> bool:
        logger.info("Alert for subscriber %s:\n%s", subscriber_id, text)
        return True


class CircuitState(enum.Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(NotificationChannel):
    """Wraps a NotificationChannel with circuit breaker protection.

    State machine: CLOSED → OPEN → HALF_OPEN → CLOSED.

    - CLOSED: All sends pass through. Consecutive failures tracked.
    - OPEN: Sends rejected immediately. After recovery_timeout, moves
      to HALF_OPEN.
    - HALF_OPEN: Single probe allowed. Success → CLOSED, failure → OPEN.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
    ) -> None:
        self._channel = channel
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._last_failure_time: float = 0.0

    @property
    def name(self) -> str:
        return self._channel.name

    @property
    def state(self) -> CircuitState:
        return self._state

    async def send(self, subscriber_id: str, text: str) -> bool:
        if self._state == CircuitState.OPEN:
            if time.monotonic() - self._last_failure_time >= self._recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info(
                    "Circuit breaker %s: OPEN → HALF_OPEN (recovery probe)", self.name,
                )
            else:
                logger.debug(
                    "Circuit breaker %s: OPEN, rejecting send to %s",
                    self.name, subscriber_id,
                )
                return False

        success = await self._channel.send(subscriber_id, text)

        if success:
            if self._state == CircuitState.HALF_OPEN:
                logger.info(
                    "Circuit breaker %s: HALF_OPEN → CLOSED (probe succeeded)", self.name,
                )
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            return True

        self._consecutive_failures += 1
        self._last_failure_time = time.monotonic()

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning("Circuit breaker %s: HALF_OPEN → OPEN (probe failed)", self.name)
        elif self._consecutive_failures >= self._failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker %s: CLOSED → OPEN after %d failures",
                self.name, self._consecutive_failures,
            )

        return False
