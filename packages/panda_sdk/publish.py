"""Publish handshake: resolve position, sign, transmit, cache the next position.

One call to ``PublishProtocol.publish`` walks the stages

    RESOLVE_POSITION -> SIGN_AND_ENCODE -> TRANSMIT -> CACHE_UPDATE -> DONE

and ends in FAILED when any stage raises. A failure before CACHE_UPDATE
leaves the position cache exactly as it was before the call; a position taken
from the cache is put back.

CREATE is the one case where the cache key changes mid-call: the position is
resolved for ``(author, schema_id)`` but the next position is stored under
``(author, document_id)``, the document id being the hash of the new entry.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum

from pydantic import ValidationError

from packages.panda_sdk.cache import LogPositionCache
from packages.panda_sdk.codec import Codec, KeyPair
from packages.panda_sdk.domain import LogPosition, OperationAction
from packages.panda_sdk.errors import (
    PandaValidationError,
    PositionUnavailableError,
    PublishError,
    SigningError,
    wrap_remote_error,
)
from packages.panda_sdk.fields import TaggedValue
from packages.panda_sdk.rpc import (
    METHOD_NEXT_ENTRY_ARGS,
    METHOD_PUBLISH_ENTRY,
    NodeTransport,
)
from packages.panda_shared.logging import get_logger, log_context
from packages.panda_shared.logging import fields as log_fields

_LOGGER = get_logger(__name__)


class PublishStage(str, Enum):
    """Stages of one publish call."""

    RESOLVE_POSITION = "resolve_position"
    SIGN_AND_ENCODE = "sign_and_encode"
    TRANSMIT = "transmit"
    CACHE_UPDATE = "cache_update"
    DONE = "done"
    FAILED = "failed"


class PublishProtocol:
    """Stateful publisher sharing one position cache across calls."""

    def __init__(
        self,
        *,
        transport: NodeTransport,
        codec: Codec,
        cache: LogPositionCache | None = None,
    ) -> None:
        self._transport = transport
        self._codec = codec
        self._cache = LogPositionCache() if cache is None else cache

    @property
    def cache(self) -> LogPositionCache:
        return self._cache

    async def next_entry_args(
        self, author: str, document_id: str | None = None
    ) -> LogPosition:
        """Return the next position for an author's document.

        The cache is consulted only for document-scoped calls.
        """
        if not author:
            raise PandaValidationError("Author must be provided")
        if document_id:
            cached = self._cache.get(author, document_id)
            if cached is not None:
                _LOGGER.debug("Next entry args served from cache: seq_num=%s", cached.seq_num)
                return cached
        return await self._fetch_position(author, document_id)

    async def publish_entry(self, entry_bytes: str, operation_bytes: str) -> LogPosition:
        """Send a signed entry and its operation; return the node's next position."""
        if not entry_bytes or not operation_bytes:
            raise PandaValidationError("Encoded entry and operation must be provided")
        try:
            result = await self._transport.request(
                METHOD_PUBLISH_ENTRY,
                {"entryEncoded": entry_bytes, "operationEncoded": operation_bytes},
            )
        except Exception as exc:
            raise wrap_remote_error(
                PublishError,
                operation="publish.transmit",
                detail="Node rejected or did not receive the entry",
                cause=exc,
            ) from exc
        try:
            return LogPosition.model_validate(result)
        except ValidationError as exc:
            raise wrap_remote_error(
                PublishError,
                operation="publish.transmit",
                detail="Node returned malformed next entry arguments",
                cause=exc,
            ) from exc

    async def publish(
        self,
        *,
        key_pair: KeyPair,
        action: OperationAction,
        schema_id: str,
        fields: Mapping[str, TaggedValue] | None = None,
        document_id: str | None = None,
        previous_operations: Sequence[str] | None = None,
    ) -> str:
        """Run the publish handshake for one operation and return the entry bytes."""
        if not schema_id:
            raise PandaValidationError("Schema must be provided")
        is_create = action is OperationAction.CREATE
        if not is_create and not document_id:
            raise PandaValidationError("Document id must be provided")

        author = key_pair.public_key()
        target = schema_id if is_create else str(document_id)
        stage = PublishStage.RESOLVE_POSITION
        consumed: LogPosition | None = None

        with log_context(
            {
                log_fields.AUTHOR: author,
                log_fields.ACTION: action.value,
                log_fields.SCHEMA_ID: schema_id,
                log_fields.DOCUMENT_ID: document_id,
            }
        ):
            try:
                consumed = self._cache.get(author, target)
                position = consumed
                if position is None:
                    position = await self._fetch_position(
                        author, None if is_create else document_id
                    )

                stage = PublishStage.SIGN_AND_ENCODE
                operation_bytes, entry_bytes, entry_hash = self._sign_and_encode(
                    key_pair=key_pair,
                    action=action,
                    schema_id=schema_id,
                    fields=fields,
                    previous_operations=previous_operations,
                    position=position,
                )

                stage = PublishStage.TRANSMIT
                next_position = await self.publish_entry(entry_bytes, operation_bytes)
            except Exception:
                if consumed is not None:
                    self._cache.set(author, target, consumed)
                with log_context({log_fields.STAGE: PublishStage.FAILED.value}):
                    _LOGGER.warning("Publish failed: failed_stage=%s", stage.value)
                raise

            stage = PublishStage.CACHE_UPDATE
            next_key = entry_hash if is_create else str(document_id)
            self._cache.set(author, next_key, next_position)

            stage = PublishStage.DONE
            with log_context(
                {
                    log_fields.ENTRY_HASH: entry_hash,
                    log_fields.LOG_ID: position.log_id,
                    log_fields.SEQ_NUM: position.seq_num,
                    log_fields.CACHE_HIT: consumed is not None,
                }
            ):
                _LOGGER.info("Entry published")
            return entry_bytes

    async def _fetch_position(self, author: str, document_id: str | None) -> LogPosition:
        try:
            result = await self._transport.request(
                METHOD_NEXT_ENTRY_ARGS, {"author": author, "document": document_id}
            )
        except Exception as exc:
            raise wrap_remote_error(
                PositionUnavailableError,
                operation="publish.resolve_position",
                detail="Could not fetch next entry arguments",
                cause=exc,
            ) from exc
        try:
            position = LogPosition.model_validate(result)
        except ValidationError as exc:
            raise wrap_remote_error(
                PositionUnavailableError,
                operation="publish.resolve_position",
                detail="Node returned malformed next entry arguments",
                cause=exc,
            ) from exc
        _LOGGER.debug(
            "Next entry args fetched from node: log_id=%s seq_num=%s",
            position.log_id,
            position.seq_num,
        )
        return position

    def _sign_and_encode(
        self,
        *,
        key_pair: KeyPair,
        action: OperationAction,
        schema_id: str,
        fields: Mapping[str, TaggedValue] | None,
        previous_operations: Sequence[str] | None,
        position: LogPosition,
    ) -> tuple[str, str, str]:
        try:
            operation_bytes = self._codec.encode_operation(
                action=action.value,
                schema_id=schema_id,
                previous_operations=(
                    None if previous_operations is None else list(previous_operations)
                ),
                fields=None if fields is None else dict(fields),
            )
            entry_bytes = self._codec.sign_and_encode_entry(
                log_id=position.log_id,
                seq_num=position.seq_num,
                skiplink=position.skiplink,
                backlink=position.backlink,
                payload=operation_bytes,
                key_pair=key_pair,
            )
            entry_hash = self._codec.generate_hash(entry_bytes)
        except Exception as exc:
            raise SigningError(
                message=f"Could not sign and encode {action.value} entry: {exc}",
                cause=exc,
            ) from exc
        return operation_bytes, entry_bytes, entry_hash

