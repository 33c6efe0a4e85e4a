"""hookwatch entry point: runs the webhook server until interrupted."""

from __future__ import annotations

import asyncio
import contextlib
import signal

import click

from hookwatch import __version__
from hookwatch.config import Settings, load_settings
from hookwatch.utils.logging import get_logger, setup_logging
from hookwatch.webhooks.server import WebhookServer

log = get_logger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run(settings: Settings, stop_event: asyncio.Event | None = None) -> WebhookServer:
    """Serve webhooks until SIGINT/SIGTERM or until ``stop_event`` is set.

    Returns the stopped server so callers can inspect what was received.
    """
    server = WebhookServer(settings.webhooks)
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()

    installed = []
    for sig in _SHUTDOWN_SIGNALS:
        # Not available on Windows event loops; Ctrl+C still raises there
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)

    log.info(
        "hookwatch_starting",
        version=__version__,
        ingest_path=settings.webhooks.ingest_path,
        events_path=settings.webhooks.events_path,
        deduplicate=settings.webhooks.deduplicate_deliveries,
    )
    await server.start()
    try:
        await stop_event.wait()
        log.info("shutdown_requested", received=server.store.count())
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        await server.stop()
    return server


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--port", type=int, default=None, help="Override the listen port")
@click.version_option(__version__, prog_name="hookwatch")
def cli(config_path: str | None, log_level: str | None, port: int | None) -> None:
    """Receive repository webhooks and serve the recent event log."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if port is not None:
        settings.webhooks.port = port
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
