"""Canonical logging field names for structured client logs.

These constants define a stable key set for structured logs and context
propagation so SDK modules do not drift apart in how they name log fields.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Log position and entry fields.
AUTHOR = "author"
SCHEMA_ID = "schema_id"
DOCUMENT_ID = "document_id"
ENTRY_HASH = "entry_hash"
LOG_ID = "log_id"
SEQ_NUM = "seq_num"
CACHE_HIT = "cache_hit"
ACTION = "action"

# Node transport fields.
ENDPOINT = "endpoint"
RPC_METHOD = "rpc_method"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
STAGE = "stage"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
