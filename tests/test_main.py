"""Tests for the service entry point."""

import asyncio
import signal

from click.testing import CliRunner

from hookwatch import __version__
from hookwatch.config import Settings, WebhooksConfig
from hookwatch.main import cli, run


def _settings() -> Settings:
    return Settings(webhooks=WebhooksConfig(secret="s3cret", bind="127.0.0.1", port=0))


class TestRun:
    async def test_stops_when_event_is_set(self):
        stop = asyncio.Event()
        stop.set()
        server = await asyncio.wait_for(run(_settings(), stop), timeout=5)
        assert server.store.count() == 0

    async def test_signal_handlers_removed_after_shutdown(self):
        stop = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, stop.set)
        await asyncio.wait_for(run(_settings(), stop), timeout=5)
        # Nothing left registered for SIGTERM on the loop
        assert asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM) is False


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_options(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for option in ("--config", "--log-level", "--port"):
            assert option in result.output
