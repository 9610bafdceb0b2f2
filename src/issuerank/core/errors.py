"""issuerank error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Search / embedding index
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
    CONFIG_FILE_NOT_FOUND = 2004

    # Search (3xxx)
    ENCODER_NOT_READY = 3001
    RECORD_NOT_FOUND = 3002
    DOCUMENT_NOT_INDEXED = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class IssueRankError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ENCODER_NOT_READY')."""
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


class ConfigError(IssueRankError):
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


class EncoderNotReady(IssueRankError):
    """The embedding encoder has not finished (or failed) initialization.

    Retryable: callers either retry once the encoder reports ready or
    substitute a zero vector score.
    """

    @classmethod
    def in_state(cls, state: str, reason: str | None = None) -> "EncoderNotReady":
        details: dict[str, Any] = {"state": state}
        if reason:
            details["reason"] = reason
        return cls(
            code=ErrorCode.ENCODER_NOT_READY,
            message=f"Embedding encoder is not ready (state: {state})",
            retryable=state != "failed",
            details=details,
        )


class RecordNotFound(IssueRankError):
    """Requested record id is absent from the backing store."""

    @classmethod
    def for_id(cls, record_id: int) -> "RecordNotFound":
        return cls(
            code=ErrorCode.RECORD_NOT_FOUND,
            message=f"Record {record_id} not found",
            details={"record_id": record_id},
        )


class DocumentNotIndexed(IssueRankError):
    """Strict similarity was requested for an id with no stored vector."""

    @classmethod
    def for_id(cls, record_id: int) -> "DocumentNotIndexed":
        return cls(
            code=ErrorCode.DOCUMENT_NOT_INDEXED,
            message=f"Record {record_id} has no stored embedding",
            details={"record_id": record_id},
        )


class InternalError(IssueRankError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
