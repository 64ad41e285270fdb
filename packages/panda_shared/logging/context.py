"""Context propagation helpers for structured logging.

This module provides a process-local logging context built on ``contextvars`` so
correlation fields (author, document id, publish stage) can be attached to every
log line without manual repetition. Each asyncio task sees its own copy.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Mapping

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar("panda_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a shallow copy of current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind non-empty values into the current logging context.

    Values are stringified to maintain a stable structured log shape.
    ``None`` values are ignored.
    """
    if not values:
        return
    current = _LOG_CONTEXT.get().copy()
    for key, value in values.items():
        if value is None:
            continue
        current[str(key)] = str(value)
    _LOG_CONTEXT.set(current)


def clear_context(*keys: str) -> None:
    """Clear selected keys or the entire logging context."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = _LOG_CONTEXT.get().copy()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


class log_context:
    """Temporarily bind logging context for the duration of a block.

    Exceptions leaving the block pass through untouched, which keeps frozen
    dataclass errors raisable from inside it.
    """

    def __init__(self, values: Mapping[str, object]) -> None:
        self._values = dict(values)
        self._tokens: list[Token[dict[str, str]]] = []

    def __enter__(self) -> None:
        self._tokens.append(_LOG_CONTEXT.set(_LOG_CONTEXT.get().copy()))
        bind_context(**self._values)

    def __exit__(self, *_: object) -> None:
        _LOG_CONTEXT.reset(self._tokens.pop())
