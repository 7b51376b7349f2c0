"""Core module exports."""

from searchsync.core.errors import (
    CaptureError,
    ConfigError,
    ErrorCode,
    FetchError,
    IndexClientError,
    InternalError,
    PipelineError,
    SearchSyncError,
)
from searchsync.core.logging import (
    bind_operation,
    clear_operation_id,
    configure_logging,
    get_logger,
    get_operation_id,
    set_operation_id,
)

__all__ = [
    # Errors
    "CaptureError",
    "ConfigError",
    "ErrorCode",
    "FetchError",
    "IndexClientError",
    "InternalError",
    "PipelineError",
    "SearchSyncError",
    # Logging
    "bind_operation",
    "clear_operation_id",
    "configure_logging",
    "get_logger",
    "get_operation_id",
    "set_operation_id",
]
