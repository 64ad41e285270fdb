"""Invocation logging helpers for public SDK methods.

This module defines a small decorator that wraps public API callables (plain
functions and coroutines alike) with structured invocation/completion logs so
every session call shares one stable callsite contract.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one public API invocation."""

    component_id: str
    api_name: str
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed public API invocation."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]


class PublicApiLoggingConcern:
    """Logging concern implementation for invocation/completion events."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        """Emit standardized structured invocation-start log."""
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        """Emit standardized structured completion log."""
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Public API completion")
            else:
                self._logger.warning("Public API completion")


def public_api_logged(
    *,
    logger: Any,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API callable with invocation/completion logging."""
    concern = PublicApiLoggingConcern(logger=logger)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        method_name = api_name or func.__name__
        signature = inspect.signature(func)

        def _invocation(args: tuple[Any, ...], kwargs: dict[str, Any]) -> InvocationContext:
            bound = signature.bind_partial(*args, **kwargs).arguments
            references = {
                name: str(bound[name])
                for name in id_fields
                if bound.get(name) not in (None, "")
            }
            return InvocationContext(
                component_id=component_id,
                api_name=method_name,
                references=references,
            )

        def _completion(
            invocation: InvocationContext, started: float, exc: Exception | None
        ) -> CompletionContext:
            return CompletionContext(
                invocation=invocation,
                success=exc is None,
                duration_ms=round((perf_counter() - started) * 1000.0, 3),
                errors=[] if exc is None else [f"{type(exc).__name__}: {exc}"],
            )

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                invocation = _invocation(args, kwargs)
                concern.on_invocation(invocation)
                started = perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    concern.on_completion(_completion(invocation, started, exc))
                    raise
                concern.on_completion(_completion(invocation, started, None))
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = _invocation(args, kwargs)
            concern.on_invocation(invocation)
            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                concern.on_completion(_completion(invocation, started, exc))
                raise
            concern.on_completion(_completion(invocation, started, None))
            return result

        return wrapper

    return decorator


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    """Build common structured fields for one invocation event."""
    return {
        fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        **context.references,
    }
