"""Alert dispatcher: renders enriched items and delivers them per subscriber.

Delivery to each matched subscriber is independent: a failure for one is
retried, then logged as a DispatchError, and never blocks or rolls back
delivery to the others. ``submit()`` runs dispatch in the background as
supervised tasks bounded by a semaphore; ``shutdown()`` gives them a grace
period and cancels whatever is left.

Each subscriber gets its own CircuitBreaker over the shared channel: a
recipient that keeps failing (blocked bot, unknown chat) is cut off without
affecting anyone else. The semaphore is held per send attempt, never across
a retry delay.
"""

import asyncio
import logging
from collections.abc import Sequence

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from news_aggregator.alerts.channels import CircuitBreaker, NotificationChannel
from news_aggregator.errors import DispatchError
from news_aggregator.ingestion.schemas import EnrichedItem
from news_aggregator.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

ALERT_TEMPLATE = """\
🚨 News Alert

📰 {title}

📂 Category: {category}
🏷️ Tags: {tags}
😊 Sentiment: {sentiment}
📊 Confidence: {confidence:.1f}%

📝 Summary: {summary}

🔗 Read more: {url}

Source: {source}"""


class DispatchConfig(BaseSettings):
    """Configuration for alert dispatch."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        case_sensitive=False,
        extra="ignore",
    )

    max_concurrency: int = Field(
        default=16,
        ge=1,
        le=256,
        description="Maximum sends in flight at once",
    )
    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum send attempts per subscriber per alert",
    )
    retry_delays: list[float] = Field(
        default=[1.0, 5.0],
        description="Per-attempt delay in seconds before each retry",
    )
    circuit_breaker_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before circuit opens",
    )
    circuit_breaker_recovery_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds before circuit breaker probes recovery",
    )


def format_alert(item: EnrichedItem) -> str:
    """Render an enriched item as alert text."""
    return ALERT_TEMPLATE.format(
        title=item.title,
        category=item.category or "uncategorized",
        tags=", ".join(item.tags) or "-",
        sentiment=item.sentiment or "neutral",
        confidence=item.confidence_percent,
        summary=item.summary or item.body or "-",
        url=item.url or "-",
        source=item.source,
    )


class AlertDispatcher:
    """Formats alerts and hands them to a notification channel.

    Usage:
        dispatcher = AlertDispatcher(TelegramChannel(token))
        dispatcher.submit(item, ["1234", "5678"])   # background
        await dispatcher.shutdown(grace_seconds=5)
    """

    def __init__(
        self,
        channel: NotificationChannel,
        config: DispatchConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config or DispatchConfig()
        self._metrics = metrics or get_metrics()
        self._channel = channel
        self._breakers: dict[str, CircuitBreaker] = {}
        self._semaphore = asyncio.Semaphore(self._config.max_concurrency)
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def channel(self) -> NotificationChannel:
        """The underlying transport."""
        return self._channel

    def breaker(self, subscriber_id: str) -> CircuitBreaker:
        """Circuit breaker guarding delivery to one subscriber."""
        breaker = self._breakers.get(subscriber_id)
        if breaker is None:
            breaker = CircuitBreaker(
                channel=self._channel,
                failure_threshold=self._config.circuit_breaker_threshold,
                recovery_timeout=self._config.circuit_breaker_recovery_seconds,
            )
            self._breakers[subscriber_id] = breaker
        return breaker

    @property
    def pending(self) -> int:
        """Number of background dispatch tasks still running."""
        return len(self._tasks)

    async def dispatch(
        self,
        item: EnrichedItem,
        subscriber_ids: Sequence[str],
    ) -> list[tuple[str, bool]]:
        """Deliver one alert to every subscriber, concurrently.

        Args:
            item: Enriched item to render.
            subscriber_ids: Matched subscribers.

        Returns:
            List of (subscriber_id, success) tuples.
        """
        if not subscriber_ids:
            return []

        text = format_alert(item)
        outcomes = await asyncio.gather(
            *(self._deliver_isolated(sid, text, item) for sid in subscriber_ids)
        )
        return list(zip(subscriber_ids, outcomes))

    def submit(
        self,
        item: EnrichedItem,
        subscriber_ids: Sequence[str],
    ) -> asyncio.Task | None:
        """Dispatch in the background without awaiting completion.

        Returns:
            The supervising task, or None when there is nothing to send or
            the dispatcher is shut down.
        """
        if not subscriber_ids:
            return None
        if self._closed:
            logger.warning(
                "Dispatcher closed, dropping alert %s for %d subscribers",
                item.fingerprint[:12], len(subscriber_ids),
            )
            self._metrics.record_dispatch("cancelled", len(subscriber_ids))
            return None

        task = asyncio.create_task(
            self.dispatch(item, list(subscriber_ids)),
            name=f"dispatch_{item.fingerprint[:12]}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def shutdown(self, grace_seconds: float = 5.0) -> int:
        """Stop accepting work and wait briefly for in-flight dispatches.

        Deliveries still running after ``grace_seconds`` are cancelled and
        lost.

        Returns:
            Number of dispatch tasks cancelled.
        """
        self._closed = True
        if not self._tasks:
            return 0

        _, pending = await asyncio.wait(set(self._tasks), timeout=grace_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Cancelled %d in-flight dispatch tasks on shutdown", len(pending),
            )
        return len(pending)

    async def _deliver_isolated(
        self,
        subscriber_id: str,
        text: str,
        item: EnrichedItem,
    ) -> bool:
        """Deliver to one subscriber, converting any failure into a log record."""
        try:
            await self._deliver(subscriber_id, text)
        except asyncio.CancelledError:
            self._metrics.record_dispatch("cancelled")
            raise
        except DispatchError as e:
            logger.error("Alert %s not delivered: %s", item.fingerprint[:12], e)
            self._metrics.record_dispatch("failed")
            return False
        except Exception as e:
            logger.error(
                "Unexpected error dispatching alert %s to %s: %s",
                item.fingerprint[:12], subscriber_id, e,
            )
            self._metrics.record_dispatch("failed")
            return False

        self._metrics.record_dispatch("delivered")
        return True

    async def _deliver(self, subscriber_id: str, text: str) -> None:
        if not await self._send_with_retry(subscriber_id, text):
            raise DispatchError(
                subscriber_id,
                f"all {self._config.retry_max_attempts} attempts failed "
                f"on {self._channel.name}",
            )

    async def _send_with_retry(self, subscriber_id: str, text: str) -> bool:
        """Attempt to send with configured retries.

        Returns:
            True if any attempt succeeded.
        """
        breaker = self.breaker(subscriber_id)
        delays = self._config.retry_delays or [0.0]
        max_attempts = self._config.retry_max_attempts

        for attempt in range(max_attempts):
            try:
                async with self._semaphore:
                    sent = await breaker.send(subscriber_id, text)
                if sent:
                    if attempt > 0:
                        logger.info(
                            "Alert delivered to %s on attempt %d",
                            subscriber_id, attempt + 1,
                        )
                    return True
            except Exception as e:
                logger.warning(
                    "Channel %s send error (attempt %d): %s",
                    self._channel.name, attempt + 1, e,
                )

            if attempt < max_attempts - 1:
                delay = delays[attempt] if attempt < len(delays) else delays[-1]
                await asyncio.sleep(delay)

        return False
