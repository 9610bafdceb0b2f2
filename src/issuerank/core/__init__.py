"""Core module exports."""

from issuerank.core.errors import (
    ConfigError,
    DocumentNotIndexed,
    EncoderNotReady,
    ErrorCode,
    InternalError,
    IssueRankError,
    RecordNotFound,
)
from issuerank.core.logging import (
    clear_request_id,
    configure_logging,
    get_log_file_path,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "DocumentNotIndexed",
    "EncoderNotReady",
    "ErrorCode",
    "InternalError",
    "IssueRankError",
    "RecordNotFound",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_log_file_path",
    "get_request_id",
    "set_request_id",
]
