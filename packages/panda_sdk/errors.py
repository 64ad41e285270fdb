"""Error taxonomy for panda SDK failures.

Four families sit under ``PandaSdkError``:

- validation errors for malformed caller input, never retried,
- remote errors for node transport/server failures, carrying the cause,
- codec errors for signing/decoding failures in the external codec,
- protocol invariant errors for duplicate creates and unknown actions.
"""

from __future__ import annotations

from dataclasses import dataclass

from packages.panda_shared.http import HttpClientError


@dataclass(frozen=True)
class PandaSdkError(Exception):
    """Base error type for panda SDK failures."""

    message: str

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message


@dataclass(frozen=True)
class PandaValidationError(PandaSdkError):
    """Malformed or missing caller input."""


@dataclass(frozen=True)
class SchemaRequiredError(PandaValidationError):
    """An operation needed a schema id and received an empty one."""


@dataclass(frozen=True)
class UnsupportedFieldTypeError(PandaValidationError):
    """A field value has no wire type."""

    field_name: str = ""


@dataclass(frozen=True)
class PandaRemoteError(PandaSdkError):
    """Transport or server failure while talking to the node."""

    operation: str
    retryable: bool = False
    cause: Exception | None = None


@dataclass(frozen=True)
class NodeRpcError(PandaRemoteError):
    """JSON-RPC call failure, either transport-level or an RPC error object."""

    code: int | None = None


@dataclass(frozen=True)
class PositionUnavailableError(PandaRemoteError):
    """Next entry arguments could not be fetched or were malformed."""


@dataclass(frozen=True)
class PublishError(PandaRemoteError):
    """The node did not accept a signed entry or replied with garbage."""


@dataclass(frozen=True)
class RemoteQueryError(PandaRemoteError):
    """Querying encoded entries from the node failed."""


@dataclass(frozen=True)
class PandaCodecError(PandaSdkError):
    """Failure raised from inside the external codec."""

    cause: Exception | None = None


@dataclass(frozen=True)
class SigningError(PandaCodecError):
    """Encoding the operation or signing the entry failed."""


@dataclass(frozen=True)
class DecodeError(PandaCodecError):
    """One entry of a batch could not be decoded."""

    entry_hash: str = ""
    index: int = -1


@dataclass(frozen=True)
class ProtocolInvariantError(PandaSdkError):
    """An entry sequence violates the log protocol."""


@dataclass(frozen=True)
class DuplicateCreateError(ProtocolInvariantError):
    """A second CREATE was seen for a live document id."""

    document_id: str = ""


@dataclass(frozen=True)
class UnhandledActionError(ProtocolInvariantError):
    """An operation carried an action the materializer does not know."""

    action: str = ""


@dataclass(frozen=True)
class UnknownDocumentError(ProtocolInvariantError):
    """An UPDATE/DELETE points at no document seen in the batch."""

    operation_id: str = ""


def map_transport_error(
    *, operation: str, error: HttpClientError, method: str
) -> NodeRpcError:
    """Map one shared HTTP client failure into a typed RPC error."""
    return NodeRpcError(
        message=f"{operation} transport failure for {method}: {error.message}",
        operation=operation,
        retryable=error.retryable,
        cause=error,
    )


def wrap_remote_error(
    error_type: type[PandaRemoteError],
    *,
    operation: str,
    detail: str,
    cause: Exception | None = None,
) -> PandaRemoteError:
    """Build one typed remote error, inheriting retryability from the cause."""
    retryable = isinstance(cause, PandaRemoteError) and cause.retryable
    suffix = f": {cause}" if cause is not None else ""
    return error_type(
        message=f"{detail}{suffix}",
        operation=operation,
        retryable=retryable,
        cause=cause,
    )
