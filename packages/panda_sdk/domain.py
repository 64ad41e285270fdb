"""Data model for log positions, entries, operations and documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OperationAction(str, Enum):
    """Known operation actions carried by log entries."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CacheKey(NamedTuple):
    """Slot identity in the log position cache."""

    author: str
    target: str


class LogPosition(BaseModel):
    """Arguments required to construct the next entry of one log."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    log_id: int = Field(alias="logId", ge=0)
    seq_num: int = Field(alias="seqNum", ge=1)
    skiplink: str | None = Field(default=None, alias="entryHashSkiplink")
    backlink: str | None = Field(default=None, alias="entryHashBacklink")

    @model_validator(mode="after")
    def _first_entry_has_no_links(self) -> LogPosition:
        """The first entry of a fresh log links to nothing."""
        if self.seq_num == 1 and (
            self.skiplink is not None or self.backlink is not None
        ):
            raise ValueError("seq_num 1 must not carry backlink or skiplink hashes")
        return self


class EncodedEntry(BaseModel):
    """Wire form of one signed entry and its operation payload."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    author: str
    entry_bytes: str = Field(alias="entryBytes", min_length=1)
    entry_hash: str = Field(alias="entryHash", min_length=1)
    log_id: int = Field(alias="logId", ge=0)
    payload_bytes: str = Field(alias="payloadBytes")
    payload_hash: str = Field(alias="payloadHash")
    seq_num: int = Field(alias="seqNum", ge=1)


class DecodedOperation(BaseModel):
    """Plain operation decoded from an entry payload."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    action: str
    schema_id: str = Field(alias="schemaId", min_length=1)
    previous_operations: tuple[str, ...] | None = Field(
        default=None, alias="previousOperations"
    )
    fields: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_wire_aliases(cls, value: object) -> object:
        """Accept the codec's ``schema``/``previous_operations`` spellings."""
        if not isinstance(value, dict):
            return value
        normalized = dict(value)
        if "schemaId" not in normalized and "schema_id" not in normalized:
            if "schema" in normalized:
                normalized["schemaId"] = normalized.pop("schema")
        if "previous_operations" in normalized and "previousOperations" not in normalized:
            normalized["previousOperations"] = normalized.pop("previous_operations")
        return normalized

    @model_validator(mode="after")
    def _check_action_shape(self) -> DecodedOperation:
        """Enforce which members each known action carries."""
        if self.action == OperationAction.CREATE.value:
            if self.fields is None:
                raise ValueError("create operations require fields")
            if self.previous_operations is not None:
                raise ValueError("create operations must not list previous operations")
        elif self.action == OperationAction.UPDATE.value:
            if self.fields is None:
                raise ValueError("update operations require fields")
            if not self.previous_operations:
                raise ValueError("update operations require previous operations")
        elif self.action == OperationAction.DELETE.value:
            if self.fields is not None:
                raise ValueError("delete operations must not carry fields")
            if not self.previous_operations:
                raise ValueError("delete operations require previous operations")
        return self


class EntryRecord(BaseModel):
    """Decoded entry paired with the encoded form it came from."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    log_id: int = Field(alias="logId", ge=0)
    seq_num: int = Field(alias="seqNum", ge=1)
    backlink: str | None = None
    skiplink: str | None = None
    signature: str | None = None
    payload_hash: str | None = Field(default=None, alias="payloadHash")
    operation: DecodedOperation
    encoded: EncodedEntry

    @property
    def operation_id(self) -> str:
        """Operation id, which is the hash of the carrying entry."""
        return self.encoded.entry_hash

    @property
    def author(self) -> str:
        """Public key of the author that signed this entry."""
        return self.encoded.author


@dataclass(slots=True)
class DocumentMeta:
    """Bookkeeping for one materialized document."""

    author: str
    schema: str
    deleted: bool = False
    edited: bool = False
    entries: list[EntryRecord] = field(default_factory=list)


@dataclass(slots=True)
class DocumentState:
    """Current state of one document after folding its operations."""

    id: str
    fields: dict[str, Any]
    meta: DocumentMeta
