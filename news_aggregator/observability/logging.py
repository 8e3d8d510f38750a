"""
Log setup for the aggregator process.

The scheduler, API and CLI log through structlog with key/value events;
sources, the dedup cache, the classifier and the dispatcher use stdlib
``logging``. Both end up on stdout at ``LOG_LEVEL``. Records emitted while a
cycle runs carry its ``cycle_id``; API requests carry ``request_id``.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from structlog.types import Processor

from news_aggregator.config.settings import get_settings

# Client libraries that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


def setup_logging() -> None:
    """
    Configure structlog and stdlib logging from settings.

    ``environment=production`` renders one JSON object per line for log
    shipping; anything else gets the colored console renderer.

    Usage:
        setup_logging()
        logger = structlog.get_logger(__name__)
        logger.info("Cycle completed", fetched=12, alerts=3)
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def cycle_context(cycle_id: int) -> Iterator[None]:
    """Tag every structlog record inside the block with ``cycle_id``.

    Only ``cycle_id`` is unbound on exit; other bound context survives.
    """
    structlog.contextvars.bind_contextvars(cycle_id=cycle_id)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("cycle_id")
