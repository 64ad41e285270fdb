"""Session: high-level entry point for talking to one panda node."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from packages.panda_sdk.cache import LogPositionCache
from packages.panda_sdk.codec import Codec, KeyPair
from packages.panda_sdk.config import PandaSdkConfig, resolve_endpoint, resolve_timeout_seconds
from packages.panda_sdk.documents import (
    DocumentContext,
    create_document,
    delete_document,
    query_documents,
    update_document,
)
from packages.panda_sdk.domain import (
    CacheKey,
    DocumentState,
    EncodedEntry,
    EntryRecord,
    LogPosition,
    OperationAction,
)
from packages.panda_sdk.errors import PandaValidationError
from packages.panda_sdk.fields import TaggedValue
from packages.panda_sdk.publish import PublishProtocol
from packages.panda_sdk.query import fetch_encoded, query_entries
from packages.panda_sdk.rpc import JsonRpcNodeClient, NodeTransport
from packages.panda_shared.config import PandaSettings
from packages.panda_shared.logging import configure_from_settings, get_logger

_LOGGER = get_logger(__name__)


class Session:
    """Communicate with a panda node.

    A session owns the position cache for every author publishing through
    it, so consecutive operations on one document skip the round trip for
    next entry arguments. A fixed key pair and schema can be configured with
    ``set_key_pair`` and ``set_schema``; every document method also accepts
    them as keyword overrides.

    Publishes to the same cache key are serialized inside one session. Two
    sessions publishing for the same author and document are not coordinated
    and the node will reject the loser.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        codec: Codec,
        timeout_seconds: float | None = None,
        transport: NodeTransport | None = None,
        cache: LogPositionCache | None = None,
    ) -> None:
        self._config = PandaSdkConfig(
            endpoint=resolve_endpoint(endpoint),
            timeout_seconds=resolve_timeout_seconds(timeout_seconds),
        )
        self._owns_transport = transport is None
        self._transport = (
            JsonRpcNodeClient(config=self._config) if transport is None else transport
        )
        self._codec = codec
        self._publisher = PublishProtocol(
            transport=self._transport, codec=codec, cache=cache
        )
        self._locks: dict[CacheKey, asyncio.Lock] = {}
        self._lock_users: dict[CacheKey, int] = {}
        self._schema: str | None = None
        self._key_pair: KeyPair | None = None
        _LOGGER.debug("Session created: endpoint=%s", self._config.endpoint)

    @classmethod
    def from_settings(
        cls,
        settings: PandaSettings,
        *,
        codec: Codec,
        transport: NodeTransport | None = None,
        configure_logs: bool = False,
    ) -> Session:
        """Build a session from resolved runtime settings.

        With ``configure_logs`` the settings' ``logging`` block is also applied
        to the root logger, for hosts that have no logging setup of their own.
        """
        if configure_logs:
            configure_from_settings(settings)
        return cls(
            settings.node.endpoint,
            codec=codec,
            timeout_seconds=settings.node.timeout_seconds,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        """Address of the node this session talks to."""
        return self._config.endpoint

    @property
    def codec(self) -> Codec:
        return self._codec

    @property
    def cache(self) -> LogPositionCache:
        return self._publisher.cache

    @property
    def schema(self) -> str:
        """Configured schema id; raises when none is set."""
        if not self._schema:
            raise PandaValidationError(
                "Configure a schema with `session.set_schema()` or with the "
                "`schema` parameter on methods."
            )
        return self._schema

    def set_schema(self, value: str) -> Session:
        self._schema = value
        return self

    @property
    def key_pair(self) -> KeyPair:
        """Configured key pair; raises when none is set."""
        if self._key_pair is None:
            raise PandaValidationError(
                "Configure a key pair with `session.set_key_pair()` or with the "
                "`key_pair` parameter on methods."
            )
        return self._key_pair

    def set_key_pair(self, value: KeyPair) -> Session:
        """Set the key pair used by methods unless one is passed explicitly.

        The key pair is not checked in any way.
        """
        self._key_pair = value
        return self

    async def aclose(self) -> None:
        """Close the node transport when this session created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    # Log level API

    async def get_next_entry_args(
        self, author: str, document_id: str | None = None
    ) -> LogPosition:
        """Return arguments for the next entry, from cache when possible."""
        return await self._publisher.next_entry_args(author, document_id)

    def set_next_entry_args(
        self, author: str, document_id: str, position: LogPosition
    ) -> None:
        """Cache arguments for the next entry of an author's document."""
        self._publisher.cache.set(author, document_id, position)

    async def publish_entry(self, entry_bytes: str, operation_bytes: str) -> LogPosition:
        """Publish an encoded entry and operation; return the next entry args."""
        return await self._publisher.publish_entry(entry_bytes, operation_bytes)

    async def query_entries_encoded(self, schema_id: str) -> list[EncodedEntry]:
        """Return the encoded entries the node holds for a schema."""
        return await fetch_encoded(self._transport, schema_id)

    async def query_entries(self, schema_id: str) -> list[EntryRecord]:
        """Return the decoded entries of a schema, in node order."""
        return await query_entries(self._transport, self._codec, schema_id)

    async def publish_operation(
        self,
        *,
        key_pair: KeyPair,
        action: OperationAction,
        schema_id: str,
        fields: Mapping[str, TaggedValue] | None = None,
        document_id: str | None = None,
        previous_operations: Sequence[str] | None = None,
    ) -> str:
        """Publish one operation, serialized with others on the same log slot."""
        target = schema_id if action is OperationAction.CREATE else str(document_id)
        key = CacheKey(key_pair.public_key(), target)
        lock = self._lock_for(key)
        try:
            async with lock:
                return await self._publisher.publish(
                    key_pair=key_pair,
                    action=action,
                    schema_id=schema_id,
                    fields=fields,
                    document_id=document_id,
                    previous_operations=previous_operations,
                )
        finally:
            self._release_lock(key)

    # Document level API

    async def create(
        self,
        fields: Mapping[str, Any],
        *,
        schema: str | None = None,
        key_pair: KeyPair | None = None,
    ) -> str:
        """Sign and publish a CREATE operation; return the signed entry bytes."""
        return await create_document(fields, self._context(schema, key_pair))

    async def update(
        self,
        document_id: str,
        fields: Mapping[str, Any],
        previous_operations: Sequence[str],
        *,
        schema: str | None = None,
        key_pair: KeyPair | None = None,
    ) -> str:
        """Sign and publish an UPDATE operation; return the signed entry bytes."""
        return await update_document(
            document_id, previous_operations, fields, self._context(schema, key_pair)
        )

    async def delete(
        self,
        document_id: str,
        previous_operations: Sequence[str],
        *,
        schema: str | None = None,
        key_pair: KeyPair | None = None,
    ) -> str:
        """Sign and publish a DELETE operation; return the signed entry bytes."""
        return await delete_document(
            document_id, previous_operations, self._context(schema, key_pair)
        )

    async def query(self, *, schema: str | None = None) -> list[DocumentState]:
        """Materialize all documents of a schema from the node's entries."""
        return await query_documents(schema or self.schema, session=self)

    def _context(self, schema: str | None, key_pair: KeyPair | None) -> DocumentContext:
        return DocumentContext(
            key_pair=key_pair or self.key_pair,
            schema_id=schema or self.schema,
            session=self,
        )

    def _lock_for(self, key: CacheKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        return lock

    def _release_lock(self, key: CacheKey) -> None:
        # The last holder or waiter drops the lock so the map tracks only busy keys.
        remaining = self._lock_users[key] - 1
        if remaining:
            self._lock_users[key] = remaining
            return
        del self._lock_users[key]
        del self._locks[key]

    def __str__(self) -> str:
        key_pair = ""
        if self._key_pair is not None:
            key_pair = f" key pair {self._key_pair.public_key()[-8:]}"
        schema = f" schema {self._schema[-8:]}" if self._schema else ""
        return f"<Session {self.endpoint}{key_pair}{schema}>"
