"""JSON-RPC 2.0 transport to a panda node over HTTP."""

from __future__ import annotations

from collections.abc import Mapping
from itertools import count
from typing import Any, Protocol, runtime_checkable

import httpx

from packages.panda_sdk.config import PandaSdkConfig
from packages.panda_sdk.errors import NodeRpcError, map_transport_error
from packages.panda_shared.http import AsyncHttpClient, HttpClientError
from packages.panda_shared.logging import get_logger, log_context
from packages.panda_shared.logging import fields as log_fields

_LOGGER = get_logger(__name__)

METHOD_NEXT_ENTRY_ARGS = "panda_getEntryArguments"
METHOD_PUBLISH_ENTRY = "panda_publishEntry"
METHOD_QUERY_ENTRIES = "panda_queryEntries"


@runtime_checkable
class NodeTransport(Protocol):
    """Request/response channel to a node."""

    async def request(self, method: str, params: Mapping[str, Any]) -> Any:
        """Call one remote method and return its result payload."""

    async def aclose(self) -> None:
        """Release transport resources."""


class JsonRpcNodeClient:
    """``NodeTransport`` speaking JSON-RPC 2.0 with HTTP POST."""

    def __init__(
        self,
        *,
        config: PandaSdkConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        http: AsyncHttpClient | None = None,
    ) -> None:
        self._config = config
        self._http = http or AsyncHttpClient(
            timeout_seconds=config.timeout_seconds,
            headers={"Content-Type": "application/json", **dict(config.headers)},
            transport=transport,
        )
        self._ids = count(1)

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(self, method: str, params: Mapping[str, Any]) -> Any:
        """Call ``method`` and return the ``result`` member of the response."""
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": dict(params),
        }
        with log_context({log_fields.RPC_METHOD: method, log_fields.ENDPOINT: self.endpoint}):
            _LOGGER.debug("Calling node: id=%s", request_id)
            try:
                response = await self._http.post_json(self.endpoint, json=payload)
            except HttpClientError as exc:
                raise map_transport_error(
                    operation="rpc.request", error=exc, method=method
                ) from exc
        return _unwrap_result(method, response)


def _unwrap_result(method: str, response: Any) -> Any:
    if not isinstance(response, Mapping):
        raise NodeRpcError(
            message=f"{method} returned a non-object JSON-RPC response",
            operation="rpc.request",
        )
    error = response.get("error")
    if error is not None:
        code = error.get("code") if isinstance(error, Mapping) else None
        detail = error.get("message", error) if isinstance(error, Mapping) else error
        raise NodeRpcError(
            message=f"{method} failed: {detail}",
            operation="rpc.request",
            code=code if isinstance(code, int) else None,
        )
    if "result" not in response:
        raise NodeRpcError(
            message=f"{method} response carries neither result nor error",
            operation="rpc.request",
        )
    return response["result"]
