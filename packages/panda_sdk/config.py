"""Runtime configuration primitives for panda SDK sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
import os

from packages.panda_sdk.errors import PandaValidationError

DEFAULT_TIMEOUT_SECONDS = 10.0
ENDPOINT_ENV = "PANDA_NODE_ENDPOINT"
TIMEOUT_ENV = "PANDA_NODE_TIMEOUT_SECONDS"


@dataclass(frozen=True, slots=True)
class PandaSdkConfig:
    """Connection defaults for one session's node transport."""

    endpoint: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    headers: tuple[tuple[str, str], ...] = field(default_factory=tuple)


def resolve_endpoint(value: str | None = None) -> str:
    """Resolve the node endpoint from explicit value or process environment."""
    if value is not None and value.strip() != "":
        return value.strip()
    env_value = os.getenv(ENDPOINT_ENV, "").strip()
    if env_value == "":
        raise PandaValidationError("Missing `endpoint` parameter for creating a session")
    return env_value


def resolve_timeout_seconds(value: float | None = None) -> float:
    """Resolve one timeout value from explicit override or environment."""
    if value is not None:
        return value
    env_value = os.getenv(TIMEOUT_ENV, "").strip()
    if env_value == "":
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(env_value)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
