"""Asynchronous JSON-over-HTTP client used by node transports."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import (
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
    is_retryable_status,
)


class AsyncHttpClient:
    """``httpx.AsyncClient`` wrapper that posts JSON and raises typed errors.

    URLs are used exactly as given; no base URL is joined in, so an endpoint
    such as ``http://node:2020/rpc`` is posted to verbatim.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying client when this wrapper created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def post_json(self, url: str, *, json: Any) -> Any:
        """POST ``json`` to ``url`` and return the decoded JSON reply."""
        try:
            response = await self._client.post(url, json=json)
        except httpx.RequestError as exc:
            raise HttpRequestError(
                message=f"HTTP request failed for POST {url}: {exc}",
                method="POST",
                url=url,
                retryable=True,
                cause=exc,
            ) from exc

        if response.is_error:
            raise HttpStatusError(
                message=f"HTTP {response.status_code} for POST {url}",
                method="POST",
                url=url,
                retryable=is_retryable_status(response.status_code),
                status_code=response.status_code,
                response_body=_body_text(response),
            )

        try:
            return response.json()
        except ValueError as exc:
            raise HttpJsonDecodeError(
                message=f"Invalid JSON response for POST {url}",
                method="POST",
                url=url,
                status_code=response.status_code,
                response_body=_body_text(response),
                cause=exc,
            ) from exc


def _body_text(response: httpx.Response) -> str:
    # Undecodable bodies must not mask the original failure.
    try:
        return response.text
    except UnicodeDecodeError:
        return ""
