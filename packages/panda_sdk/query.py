"""Fetch encoded entries of a schema from the node and decode them."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from packages.panda_sdk.codec import Codec
from packages.panda_sdk.domain import EncodedEntry, EntryRecord, OperationAction
from packages.panda_sdk.errors import (
    DecodeError,
    RemoteQueryError,
    SchemaRequiredError,
    wrap_remote_error,
)
from packages.panda_sdk.fields import untag_fields
from packages.panda_sdk.rpc import METHOD_QUERY_ENTRIES, NodeTransport
from packages.panda_shared.logging import get_logger, log_context
from packages.panda_shared.logging import fields as log_fields

_LOGGER = get_logger(__name__)


async def fetch_encoded(transport: NodeTransport, schema_id: str) -> list[EncodedEntry]:
    """Return all encoded entries the node holds for ``schema_id``."""
    if not schema_id:
        raise SchemaRequiredError("Schema must be provided")
    try:
        result = await transport.request(METHOD_QUERY_ENTRIES, {"schema": schema_id})
    except Exception as exc:
        raise wrap_remote_error(
            RemoteQueryError,
            operation="query.fetch_encoded",
            detail=f"Could not query entries of schema {schema_id}",
            cause=exc,
        ) from exc

    entries = result.get("entries") if isinstance(result, Mapping) else None
    if not isinstance(entries, list):
        raise RemoteQueryError(
            message=f"Node returned no entry list for schema {schema_id}",
            operation="query.fetch_encoded",
        )
    try:
        return [EncodedEntry.model_validate(item) for item in entries]
    except ValidationError as exc:
        raise wrap_remote_error(
            RemoteQueryError,
            operation="query.fetch_encoded",
            detail="Node returned malformed encoded entries",
            cause=exc,
        ) from exc


def decode_all(codec: Codec, encoded_entries: Sequence[EncodedEntry]) -> list[EntryRecord]:
    """Decode every entry in input order, untagging operation fields.

    One bad entry fails the whole batch.
    """
    records: list[EntryRecord] = []
    for index, entry in enumerate(encoded_entries):
        try:
            records.append(_decode_one(codec, entry))
        except Exception as exc:
            raise DecodeError(
                message=f"Could not decode entry {entry.entry_hash} at index {index}: {exc}",
                cause=exc,
                entry_hash=entry.entry_hash,
                index=index,
            ) from exc
    return records


async def query_entries(
    transport: NodeTransport, codec: Codec, schema_id: str
) -> list[EntryRecord]:
    """Fetch and decode all entries of a schema."""
    encoded = await fetch_encoded(transport, schema_id)
    with log_context({log_fields.SCHEMA_ID: schema_id}):
        _LOGGER.debug("Decoding %s entries", len(encoded))
        return decode_all(codec, encoded)


def _decode_one(codec: Codec, entry: EncodedEntry) -> EntryRecord:
    decoded: dict[str, Any] = dict(codec.decode_entry(entry.entry_bytes, entry.payload_bytes))
    operation = decoded.get("operation")
    if operation is None:
        operation = codec.decode_operation(entry.payload_bytes)
    operation = dict(operation)

    if operation.get("action") != OperationAction.DELETE.value and operation.get("fields") is not None:
        operation["fields"] = untag_fields(operation["fields"])

    decoded["operation"] = operation
    decoded["encoded"] = entry
    return EntryRecord.model_validate(decoded)
