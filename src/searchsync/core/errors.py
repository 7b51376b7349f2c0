"""searchsync error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Sync (fetch, pipeline, index client, delete capture)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2003

    # Sync (3xxx)
    FETCH_FAILED = 3001
    TRANSFORM_FAILED = 3002
    FILTER_FAILED = 3003
    CUSTOM_ID_FAILED = 3004
    INDEX_FAILED = 3005
    UNSUPPORTED_OPERATION = 3006
    CAPTURE_MISSING = 3007
    CAPTURE_CONFLICT = 3008

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True, slots=True)
class SearchSyncError(Exception):
    """Base error with structured context for log events."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'FETCH_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SearchSyncError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class FetchError(SearchSyncError):
    """Re-fetching authoritative data from the record store failed."""

    @classmethod
    def entry(cls, entity_type: str, entity_id: Any, reason: str) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_FAILED,
            message=f"Could not fetch entry {entity_id} of {entity_type}: {reason}",
            retryable=True,
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )

    @classmethod
    def entries(cls, entity_type: str, reason: str) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_FAILED,
            message=f"Could not fetch entries of {entity_type}: {reason}",
            retryable=True,
            details={"entity_type": entity_type},
        )

    @classmethod
    def not_found(cls, entity_type: str, entity_id: Any) -> "FetchError":
        return cls(
            code=ErrorCode.FETCH_FAILED,
            message=f"Entry {entity_id} of {entity_type} not found",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class PipelineError(SearchSyncError):
    """A transform, filter or custom id stage rejected a batch."""

    @classmethod
    def aborted(cls, entity_type: str, action: str, reason: str) -> "PipelineError":
        code = {
            "transformed": ErrorCode.TRANSFORM_FAILED,
            "filtered": ErrorCode.FILTER_FAILED,
            "mapped": ErrorCode.CUSTOM_ID_FAILED,
        }.get(action, ErrorCode.TRANSFORM_FAILED)
        return cls(
            code=code,
            message=f"Indexing of {entity_type} aborted as the data could not be {action}",
            details={"entity_type": entity_type, "action": action, "reason": reason},
        )


class IndexClientError(SearchSyncError):
    """The search index rejected a document mutation."""

    @classmethod
    def request_failed(cls, index_name: str, action: str, reason: str) -> "IndexClientError":
        return cls(
            code=ErrorCode.INDEX_FAILED,
            message=f"Could not {action} documents in index {index_name}: {reason}",
            retryable=True,
            details={"index_name": index_name, "action": action},
        )


class CaptureError(SearchSyncError):
    """Delete-capture correlation errors."""

    @classmethod
    def missing(cls, operation_id: str) -> "CaptureError":
        return cls(
            code=ErrorCode.CAPTURE_MISSING,
            message=f"No captured data for delete operation {operation_id}",
            details={"operation_id": operation_id},
        )

    @classmethod
    def conflict(cls, operation_id: str) -> "CaptureError":
        return cls(
            code=ErrorCode.CAPTURE_CONFLICT,
            message=f"Delete operation {operation_id} already captured",
            details={"operation_id": operation_id},
        )


class InternalError(SearchSyncError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

    @classmethod
    def timeout(cls, operation: str, seconds: float) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_TIMEOUT,
            message=f"{operation} timed out after {seconds}s",
            retryable=True,
            details={"operation": operation, "timeout_sec": seconds},
        )
