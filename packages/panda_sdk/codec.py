"""Protocols for the external entry/operation codec and signing key pairs.

The SDK never signs, hashes or serializes entries itself. Callers inject an
object implementing ``Codec`` (typically bindings to the node's reference
codec) and key pairs implementing ``KeyPair``. Hex strings are used for every
binary value crossing this boundary.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from packages.panda_sdk.fields import TaggedValue


@runtime_checkable
class KeyPair(Protocol):
    """Ed25519 key pair used to sign entries."""

    def public_key(self) -> str:
        """Return the hex-encoded public key."""


@runtime_checkable
class Codec(Protocol):
    """Entry signing/encoding and decoding capability set."""

    def encode_operation(
        self,
        *,
        action: str,
        schema_id: str,
        previous_operations: Sequence[str] | None,
        fields: Mapping[str, TaggedValue] | None,
    ) -> str:
        """Validate and encode an operation, returning hex payload bytes."""

    def sign_and_encode_entry(
        self,
        *,
        log_id: int,
        seq_num: int,
        skiplink: str | None,
        backlink: str | None,
        payload: str,
        key_pair: KeyPair,
    ) -> str:
        """Sign an entry over the payload, returning hex entry bytes."""

    def generate_hash(self, value: str) -> str:
        """Return the hash of a hex-encoded value."""

    def decode_entry(self, entry_bytes: str, payload_bytes: str | None = None) -> Mapping[str, Any]:
        """Decode entry bytes into log metadata plus the decoded operation.

        The mapping carries ``logId``, ``seqNum``, ``backlink``, ``skiplink``,
        ``payloadHash``, ``signature`` and, when payload bytes are given,
        ``operation`` with ``action``, ``schema``, ``previous_operations`` and
        tagged ``fields``.
        """

    def decode_operation(self, payload_bytes: str) -> Mapping[str, Any]:
        """Decode operation payload bytes into their plain form."""
