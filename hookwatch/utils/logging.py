"""Structured logging for the webhook service, built on structlog.

Per-delivery context (``event_type``, ``delivery_id``) is bound by the
request handlers through ``structlog.contextvars`` and merged into every
line logged while a delivery is being processed.
"""

from __future__ import annotations

import logging
import re
import sys

import structlog

# Keys whose values never reach the log output
_REDACTED_KEYS = frozenset({"secret", "signature", "admin_token", "authorization"})

_INLINE_SECRET = re.compile(
    r"(token|key|secret|password|authorization|signature)[\"']?\s*[:=]\s*[\"']?[\w\-\.]+",
    re.IGNORECASE,
)

_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.server")


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if key.lower() in _REDACTED_KEYS:
            event_dict[key] = "***REDACTED***"
        elif isinstance(value, str) and _INLINE_SECRET.search(value):
            event_dict[key] = _INLINE_SECRET.sub(r"\1=***REDACTED***", value)
    return event_dict


def _build_formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog through stdlib logging on stderr."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if numeric_level <= logging.DEBUG:
        print(
            "WARNING: DEBUG logging is enabled. Webhook payloads may appear "
            "in logs. Do not use in production.",
            file=sys.stderr,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            _filter_sensitive,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter(json_output))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # One access line per delivery duplicates webhook_received
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
