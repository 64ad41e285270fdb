"""Fold decoded log entries into document state.

Records are stable-sorted by ``seq_num`` and folded left to right:

- CREATE opens a document whose id is the hash of the creating entry.
- UPDATE shallow-merges its fields and marks the document edited.
- DELETE clears the fields and marks the document deleted.

A deleted document is a tombstone: later operations on it are skipped
silently and leave no history. Duplicate live creates and unknown actions
fail the whole batch. Sequence numbers only order entries within one log, so
callers mixing several authors or logs should partition the batch first.
"""

from __future__ import annotations

from collections.abc import Iterable

from packages.panda_sdk.domain import (
    DocumentMeta,
    DocumentState,
    EntryRecord,
    OperationAction,
)
from packages.panda_sdk.errors import (
    DuplicateCreateError,
    UnhandledActionError,
    UnknownDocumentError,
)
from packages.panda_shared.logging import get_logger

_LOGGER = get_logger(__name__)


def materialize(records: Iterable[EntryRecord]) -> dict[str, DocumentState]:
    """Return document id -> state, in order of first CREATE sighting."""
    documents: dict[str, DocumentState] = {}
    # operation id -> id of the document the operation belongs to
    owners: dict[str, str] = {}

    for record in sorted(records, key=lambda item: item.seq_num):
        action = record.operation.action

        if action == OperationAction.CREATE.value:
            _apply_create(documents, owners, record)
            continue

        if action not in (OperationAction.UPDATE.value, OperationAction.DELETE.value):
            raise UnhandledActionError(
                message=f"Unhandled operation action '{action}' in entry {record.operation_id}",
                action=action,
            )

        document = documents[_resolve_owner(owners, record)]
        owners[record.operation_id] = document.id
        if document.meta.deleted:
            _LOGGER.debug(
                "Skipping %s on deleted document %s", action, document.id
            )
            continue

        if action == OperationAction.UPDATE.value:
            document.fields = {**document.fields, **(record.operation.fields or {})}
            document.meta.edited = True
        else:
            document.fields = {}
            document.meta.deleted = True
        document.meta.entries.append(record)

    return documents


def _apply_create(
    documents: dict[str, DocumentState],
    owners: dict[str, str],
    record: EntryRecord,
) -> None:
    document_id = record.operation_id
    existing = documents.get(document_id)
    if existing is not None:
        if existing.meta.deleted:
            return
        raise DuplicateCreateError(
            message=f"Document {document_id} was created twice",
            document_id=document_id,
        )

    documents[document_id] = DocumentState(
        id=document_id,
        fields=dict(record.operation.fields or {}),
        meta=DocumentMeta(
            author=record.author,
            schema=record.operation.schema_id,
            entries=[record],
        ),
    )
    owners[document_id] = document_id


def _resolve_owner(owners: dict[str, str], record: EntryRecord) -> str:
    for previous in record.operation.previous_operations or ():
        owner = owners.get(previous)
        if owner is not None:
            return owner
    raise UnknownDocumentError(
        message=(
            f"Entry {record.operation_id} follows operations "
            f"{list(record.operation.previous_operations or ())} of no known document"
        ),
        operation_id=record.operation_id,
    )
