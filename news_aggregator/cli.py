"""
Command-line interface for news-aggregator.

Usage:
    news-aggregator run             # Run the scheduler (+ API, metrics)
    news-aggregator run-once        # Run a single cycle and print the result
    news-aggregator parse-rule SPEC # Validate an alert rule spec
"""

import asyncio
import json
import signal

import click

from news_aggregator.config.settings import get_settings
from news_aggregator.observability.logging import setup_logging
from news_aggregator.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """News Aggregator - multi-source news fetch, classification and alerts."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--mock", is_flag=True, help="Use mock sources, keyword classifier and console alerts")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--api/--no-api", default=True, help="Serve the HTTP API in the same process")
def run(mock: bool, metrics: bool, api: bool) -> None:
    """Run the aggregation scheduler until SIGINT/SIGTERM."""
    from news_aggregator.alerts.repository import AlertRuleRepository
    from news_aggregator.services.factory import build_service

    settings = get_settings()

    async def run_service():
        shutdown = asyncio.Event()
        rules = AlertRuleRepository()
        service = build_service(settings, use_mock=mock, rules=rules, shutdown=shutdown)

        if metrics:
            get_metrics().start_server(port=settings.metrics_port)

        # Handle shutdown signals
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown.set)

        tasks = {asyncio.create_task(service.start(), name="aggregation_service")}

        server = None
        if api:
            import uvicorn

            from news_aggregator.api.app import create_app

            config = uvicorn.Config(
                create_app(service=service, rules=rules),
                host=settings.api_host,
                port=settings.api_port,
                log_level="info",
            )
            server = uvicorn.Server(config)
            tasks.add(asyncio.create_task(server.serve(), name="api_server"))
            click.echo(f"API available on http://{settings.api_host}:{settings.api_port}")

        # Whichever side stops first brings the other down
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        shutdown.set()
        if server is not None:
            server.should_exit = True
        await asyncio.gather(*tasks, return_exceptions=True)

    asyncio.run(run_service())


@main.command("run-once")
@click.option("--mock", is_flag=True, help="Use mock sources, keyword classifier and console alerts")
def run_once(mock: bool) -> None:
    """Run one fetch -> classify -> alert cycle and print its result."""
    from news_aggregator.services.factory import build_service

    async def run_cycle():
        service = build_service(use_mock=mock)
        try:
            return await service.run_cycle()
        finally:
            await service.close()

    result = asyncio.run(run_cycle())

    click.echo("\nCycle Results:")
    click.echo(f"  outcome: {result.outcome}")
    click.echo(f"  fetched: {result.fetched}")
    click.echo(f"  new: {result.candidates}")
    click.echo(f"  classified: {result.classified}")
    click.echo(f"  alerts: {result.alerts}")
    click.echo(f"  duration: {result.duration_seconds:.2f}s")
    if result.error:
        click.echo(click.style(f"  error: {result.error}", fg="red"))


@main.command("parse-rule")
@click.argument("spec")
@click.option("--subscriber", default="cli", help="Subscriber id to attach")
def parse_rule(spec: str, subscriber: str) -> None:
    """Validate an alert rule SPEC such as 'category=technology keywords=bitcoin'."""
    from news_aggregator.alerts.schemas import AlertRule

    try:
        rule = AlertRule.from_spec(subscriber, spec)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SPEC")

    click.echo(json.dumps(rule.to_dict(), indent=2))


if __name__ == "__main__":
    main()
