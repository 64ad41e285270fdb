"""Public document operations: create, update, delete and query."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from packages.panda_sdk.codec import KeyPair
from packages.panda_sdk.domain import DocumentState, OperationAction
from packages.panda_sdk.errors import PandaValidationError, SchemaRequiredError
from packages.panda_sdk.fields import tag_fields
from packages.panda_sdk.materializer import materialize
from packages.panda_shared.logging import get_logger, public_api_logged

if TYPE_CHECKING:
    from packages.panda_sdk.session import Session

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "panda_sdk.documents"


@dataclass(frozen=True, slots=True)
class DocumentContext:
    """Signing key, schema and session used by one document operation."""

    key_pair: KeyPair
    schema_id: str
    session: Session


@public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID)
async def create_document(fields: Mapping[str, Any], context: DocumentContext) -> str:
    """Publish a CREATE operation and return the signed entry bytes.

    The next position of the new document is cached under its id, which is
    the hash of the returned entry.
    """
    tagged = tag_fields(fields)
    if not tagged:
        raise PandaValidationError("Operation fields must be provided")
    return await context.session.publish_operation(
        key_pair=context.key_pair,
        action=OperationAction.CREATE,
        schema_id=context.schema_id,
        fields=tagged,
    )


@public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID, id_fields=("document_id",))
async def update_document(
    document_id: str,
    previous_operations: Sequence[str],
    fields: Mapping[str, Any],
    context: DocumentContext,
) -> str:
    """Publish an UPDATE operation and return the signed entry bytes.

    ``previous_operations`` lists the operation ids of all current tips of
    the document graph; it is passed through unchecked.
    """
    _require_document(document_id, previous_operations)
    tagged = tag_fields(fields)
    if not tagged:
        raise PandaValidationError("Operation fields must be provided")
    return await context.session.publish_operation(
        key_pair=context.key_pair,
        action=OperationAction.UPDATE,
        schema_id=context.schema_id,
        fields=tagged,
        document_id=document_id,
        previous_operations=previous_operations,
    )


@public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID, id_fields=("document_id",))
async def delete_document(
    document_id: str,
    previous_operations: Sequence[str],
    context: DocumentContext,
) -> str:
    """Publish a DELETE operation and return the signed entry bytes."""
    _require_document(document_id, previous_operations)
    return await context.session.publish_operation(
        key_pair=context.key_pair,
        action=OperationAction.DELETE,
        schema_id=context.schema_id,
        document_id=document_id,
        previous_operations=previous_operations,
    )


@public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID, id_fields=("schema_id",))
async def query_documents(schema_id: str, *, session: Session) -> list[DocumentState]:
    """Fetch every entry of a schema and materialize its documents."""
    if not schema_id:
        raise SchemaRequiredError("Schema must be provided")
    records = await session.query_entries(schema_id)
    return list(materialize(records).values())


def _require_document(document_id: str, previous_operations: Sequence[str]) -> None:
    if not document_id:
        raise PandaValidationError("Document id must be provided")
    if not previous_operations:
        raise PandaValidationError("Previous operations must be provided")
