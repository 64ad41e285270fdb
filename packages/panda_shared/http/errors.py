"""Failures raised by the shared HTTP client."""

from __future__ import annotations

from dataclasses import dataclass

# 4xx statuses that are transient; every 5xx is retryable too.
_RETRYABLE_STATUSES = frozenset({408, 425, 429})


def is_retryable_status(status_code: int) -> bool:
    """Return whether a failed response status is worth retrying."""
    return status_code >= 500 or status_code in _RETRYABLE_STATUSES


@dataclass(frozen=True)
class HttpError(Exception):
    """Base error type for shared HTTP helper failures."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class HttpClientError(HttpError):
    """One outbound call to ``url`` failed."""

    method: str
    url: str
    retryable: bool = False
    cause: Exception | None = None


@dataclass(frozen=True)
class HttpRequestError(HttpClientError):
    """No response arrived: connect, timeout or protocol failure."""


@dataclass(frozen=True)
class HttpStatusError(HttpClientError):
    """The peer answered with a 4xx or 5xx status."""

    status_code: int = 0
    response_body: str = ""


@dataclass(frozen=True)
class HttpJsonDecodeError(HttpClientError):
    """A successful response carried a body that is not JSON."""

    status_code: int = 0
    response_body: str = ""
