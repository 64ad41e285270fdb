"""Test doubles for the codec, key pairs and the node.

``FakeCodec`` stands in for the real entry codec with a JSON-over-hex
encoding so tests can read back what was signed. ``FakeNode`` keeps per-author
logs in memory and answers the three node RPC methods the way a real node
does, which lets session tests run full publish/query cycles.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from packages.panda_sdk.domain import EncodedEntry, EntryRecord, OperationAction
from packages.panda_sdk.errors import NodeRpcError
from packages.panda_sdk.fields import TaggedValue
from packages.panda_sdk.rpc import (
    METHOD_NEXT_ENTRY_ARGS,
    METHOD_PUBLISH_ENTRY,
    METHOD_QUERY_ENTRIES,
)

SCHEMA_ID = "venue_0020c65567ae37efea293e34a9c7d13f8f2bf23dbdc3b5c7b9ab46293111c48fc78b"
AUTHOR = "2f8e50c2ede6d936ecc3144187ff1c273808185cfbc5ff3d3748d1ff7353fc96"
OTHER_AUTHOR = "1bbd8b4c0dbad1ab1ccb8e1b4be69e4e54ce4e8c0bd2b5fd34f2c24c4ad9f80a"


def _hex(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True).encode("utf-8").hex()


def _unhex(value: str) -> dict[str, Any]:
    return json.loads(bytes.fromhex(value).decode("utf-8"))


def entry_hash(entry_bytes: str) -> str:
    return "0020" + hashlib.sha256(bytes.fromhex(entry_bytes)).hexdigest()


class FakeKeyPair:
    def __init__(self, public_key: str = AUTHOR) -> None:
        self._public_key = public_key

    def public_key(self) -> str:
        return self._public_key


class FakeCodec:
    """JSON-over-hex codec with switchable failures."""

    def __init__(self) -> None:
        self.sign_error: Exception | None = None
        self.undecodable: set[str] = set()
        self.signed: list[dict[str, Any]] = []
        self.include_operation = True

    def encode_operation(
        self,
        *,
        action: str,
        schema_id: str,
        previous_operations: Sequence[str] | None,
        fields: Mapping[str, TaggedValue] | None,
    ) -> str:
        payload: dict[str, Any] = {"action": action, "schema": schema_id}
        if previous_operations is not None:
            payload["previous_operations"] = list(previous_operations)
        if fields is not None:
            payload["fields"] = {
                name: {"type": value.type.value, "value": value.value}
                for name, value in fields.items()
            }
        return _hex(payload)

    def sign_and_encode_entry(
        self,
        *,
        log_id: int,
        seq_num: int,
        skiplink: str | None,
        backlink: str | None,
        payload: str,
        key_pair: Any,
    ) -> str:
        if self.sign_error is not None:
            raise self.sign_error
        entry = {
            "author": key_pair.public_key(),
            "logId": log_id,
            "seqNum": seq_num,
            "skiplink": skiplink,
            "backlink": backlink,
            "payloadHash": entry_hash(payload),
        }
        self.signed.append(entry)
        return _hex(entry)

    def generate_hash(self, value: str) -> str:
        return entry_hash(value)

    def decode_entry(self, entry_bytes: str, payload_bytes: str | None = None) -> dict[str, Any]:
        if entry_bytes in self.undecodable:
            raise ValueError("invalid entry encoding")
        entry = _unhex(entry_bytes)
        decoded = {
            "logId": entry["logId"],
            "seqNum": entry["seqNum"],
            "backlink": entry["backlink"],
            "skiplink": entry["skiplink"],
            "payloadHash": entry["payloadHash"],
            "signature": "ed25519:" + entry_hash(entry_bytes)[-16:],
        }
        if payload_bytes is not None and self.include_operation:
            decoded["operation"] = self.decode_operation(payload_bytes)
        return decoded

    def decode_operation(self, payload_bytes: str) -> dict[str, Any]:
        return _unhex(payload_bytes)


class RecordingTransport:
    """Transport answering each RPC method through a registered handler."""

    def __init__(self, handlers: Mapping[str, Callable[[dict[str, Any]], Any]] | None = None) -> None:
        self.handlers: dict[str, Callable[[dict[str, Any]], Any]] = dict(handlers or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    async def request(self, method: str, params: Mapping[str, Any]) -> Any:
        self.calls.append((method, dict(params)))
        handler = self.handlers.get(method)
        if handler is None:
            raise NodeRpcError(
                message=f"{method} failed: method not found",
                operation="rpc.request",
                code=-32601,
            )
        return handler(dict(params))

    async def aclose(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


class FakeNode(RecordingTransport):
    """In-memory node keeping one log per author and document."""

    def __init__(self, codec: FakeCodec) -> None:
        super().__init__(
            {
                METHOD_NEXT_ENTRY_ARGS: self._next_entry_args,
                METHOD_PUBLISH_ENTRY: self._publish_entry,
                METHOD_QUERY_ENTRIES: self._query_entries,
            }
        )
        self._codec = codec
        self.entries: list[dict[str, Any]] = []
        self._documents: dict[str, str] = {}
        self._logs: dict[tuple[str, str], int] = {}
        self.reject_publish = False

    def _next_entry_args(self, params: dict[str, Any]) -> dict[str, Any]:
        author = params["author"]
        document = params.get("document")
        if document is None:
            return self._args(log_id=self._fresh_log_id(author), seq_num=1, backlink=None)
        log_id = self._logs[(author, document)]
        last = self._log_entries(author, log_id)[-1]
        return self._args(
            log_id=log_id, seq_num=last["seqNum"] + 1, backlink=last["entryHash"]
        )

    def _publish_entry(self, params: dict[str, Any]) -> dict[str, Any]:
        if self.reject_publish:
            raise NodeRpcError(
                message="panda_publishEntry failed: invalid backlink",
                operation="rpc.request",
                code=-32000,
            )
        entry_bytes = params["entryEncoded"]
        payload_bytes = params["operationEncoded"]
        decoded = self._codec.decode_entry(entry_bytes, payload_bytes)
        operation = decoded["operation"]
        author = _unhex(entry_bytes)["author"]
        hash_ = entry_hash(entry_bytes)

        if operation["action"] == OperationAction.CREATE.value:
            document = hash_
            self._logs[(author, document)] = decoded["logId"]
        else:
            document = self._documents[operation["previous_operations"][0]]
        self._documents[hash_] = document

        self.entries.append(
            {
                "author": author,
                "entryBytes": entry_bytes,
                "entryHash": hash_,
                "logId": decoded["logId"],
                "payloadBytes": payload_bytes,
                "payloadHash": decoded["payloadHash"],
                "seqNum": decoded["seqNum"],
                "schema": operation["schema"],
            }
        )
        return self._args(
            log_id=decoded["logId"], seq_num=decoded["seqNum"] + 1, backlink=hash_
        )

    def _query_entries(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "entries": [
                {key: value for key, value in entry.items() if key != "schema"}
                for entry in self.entries
                if entry["schema"] == params["schema"]
            ]
        }

    def _fresh_log_id(self, author: str) -> int:
        used = [log_id for (owner, _), log_id in self._logs.items() if owner == author]
        return max(used, default=-1) + 1

    def _log_entries(self, author: str, log_id: int) -> list[dict[str, Any]]:
        return [
            entry
            for entry in self.entries
            if entry["author"] == author and entry["logId"] == log_id
        ]

    @staticmethod
    def _args(*, log_id: int, seq_num: int, backlink: str | None) -> dict[str, Any]:
        return {
            "logId": log_id,
            "seqNum": seq_num,
            "entryHashBacklink": backlink,
            "entryHashSkiplink": None,
        }


def make_record(
    *,
    hash_: str,
    seq_num: int,
    action: str,
    fields: Mapping[str, Any] | None = None,
    previous: Sequence[str] | None = None,
    author: str = AUTHOR,
    schema_id: str = SCHEMA_ID,
    log_id: int = 0,
) -> EntryRecord:
    """Build one decoded entry record without going through a codec."""
    operation: dict[str, Any] = {"action": action, "schemaId": schema_id}
    if fields is not None:
        operation["fields"] = dict(fields)
    if previous is not None:
        operation["previousOperations"] = list(previous)
    return EntryRecord(
        log_id=log_id,
        seq_num=seq_num,
        backlink=None,
        skiplink=None,
        operation=operation,
        encoded=EncodedEntry(
            author=author,
            entry_bytes="00" + hash_,
            entry_hash=hash_,
            log_id=log_id,
            payload_bytes="00",
            payload_hash="0020" + hash_,
            seq_num=seq_num,
        ),
    )
