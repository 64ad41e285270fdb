"""Root logger setup for processes embedding the panda client.

The SDK modules only ever call ``get_logger``; installing a handler is left
to the host process through ``configure_logging`` or, when it already holds a
resolved ``PandaSettings``, ``configure_from_settings``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from packages.panda_shared.config import LoggingSettings, PandaSettings

from . import fields
from .context import bind_context, get_context

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_PLAIN_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _context_of(record: logging.LogRecord) -> dict[str, str]:
    context = getattr(record, "context", None)
    return context if isinstance(context, dict) else {}


class ContextFilter(logging.Filter):
    """Copy the bound log context onto every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        record.context = context
        record.__dict__.update(context)
        return True


class JsonFormatter(logging.Formatter):
    """One compact JSON object per line; context keys sit beside the core ones."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **_context_of(record),
        }
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Console-friendly lines ending in sorted ``key=value`` context pairs."""

    def __init__(self) -> None:
        super().__init__(fmt=_PLAIN_FORMAT, datefmt=_PLAIN_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        pairs = sorted(_context_of(record).items())
        if not pairs:
            return text
        return text + " " + " ".join(f"{key}={value}" for key, value in pairs)


def _stdout_handler(level: str, json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    return handler


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Route the root logger to a single stdout handler.

    Calling this again swaps the handler rather than stacking a second one.
    ``service`` and ``environment`` are bound into the log context so every
    later record carries them.
    """
    level = level.upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(_stdout_handler(level, json_output))

    seeded = {
        key: value
        for key, value in ((fields.SERVICE, service), (fields.ENVIRONMENT, environment))
        if value
    }
    if seeded:
        bind_context(**seeded)


def configure_from_settings(settings: PandaSettings | LoggingSettings) -> None:
    """Apply the ``logging`` block of resolved settings to the root logger."""
    block = settings.logging if isinstance(settings, PandaSettings) else settings
    configure_logging(
        level=block.level,
        json_output=block.json_output,
        service=block.service,
        environment=block.environment,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger from the standard logging hierarchy."""
    return logging.getLogger(name)
