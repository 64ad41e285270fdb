"""Public panda SDK interface: sessions, document operations and the fold."""

from packages.panda_sdk.cache import LogPositionCache
from packages.panda_sdk.codec import Codec, KeyPair
from packages.panda_sdk.config import PandaSdkConfig
from packages.panda_sdk.documents import (
    DocumentContext,
    create_document,
    delete_document,
    query_documents,
    update_document,
)
from packages.panda_sdk.domain import (
    CacheKey,
    DecodedOperation,
    DocumentMeta,
    DocumentState,
    EncodedEntry,
    EntryRecord,
    LogPosition,
    OperationAction,
)
from packages.panda_sdk.errors import (
    DecodeError,
    DuplicateCreateError,
    NodeRpcError,
    PandaCodecError,
    PandaRemoteError,
    PandaSdkError,
    PandaValidationError,
    PositionUnavailableError,
    ProtocolInvariantError,
    PublishError,
    RemoteQueryError,
    SchemaRequiredError,
    SigningError,
    UnhandledActionError,
    UnknownDocumentError,
    UnsupportedFieldTypeError,
)
from packages.panda_sdk.fields import FieldType, TaggedValue, tag_fields, untag_fields
from packages.panda_sdk.materializer import materialize
from packages.panda_sdk.publish import PublishProtocol, PublishStage
from packages.panda_sdk.query import decode_all, fetch_encoded, query_entries
from packages.panda_sdk.rpc import JsonRpcNodeClient, NodeTransport
from packages.panda_sdk.session import Session

__all__ = [
    "CacheKey",
    "Codec",
    "DecodeError",
    "DecodedOperation",
    "DocumentContext",
    "DocumentMeta",
    "DocumentState",
    "DuplicateCreateError",
    "EncodedEntry",
    "EntryRecord",
    "FieldType",
    "JsonRpcNodeClient",
    "KeyPair",
    "LogPosition",
    "LogPositionCache",
    "NodeRpcError",
    "NodeTransport",
    "OperationAction",
    "PandaCodecError",
    "PandaRemoteError",
    "PandaSdkConfig",
    "PandaSdkError",
    "PandaValidationError",
    "PositionUnavailableError",
    "ProtocolInvariantError",
    "PublishError",
    "PublishProtocol",
    "PublishStage",
    "RemoteQueryError",
    "SchemaRequiredError",
    "Session",
    "SigningError",
    "TaggedValue",
    "UnhandledActionError",
    "UnknownDocumentError",
    "UnsupportedFieldTypeError",
    "create_document",
    "decode_all",
    "delete_document",
    "fetch_encoded",
    "materialize",
    "query_documents",
    "query_entries",
    "tag_fields",
    "untag_fields",
]
