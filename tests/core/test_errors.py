"""Tests for error types and codes."""

import pytest

from issuerank.core.errors import (
    ConfigError,
    DocumentNotIndexed,
    EncoderNotReady,
    ErrorCode,
    InternalError,
    IssueRankError,
    RecordNotFound,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.ENCODER_NOT_READY, 3000),
            (ErrorCode.RECORD_NOT_FOUND, 3000),
            (ErrorCode.DOCUMENT_NOT_INDEXED, 3000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestIssueRankError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = IssueRankError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        error = IssueRankError(code=ErrorCode.INTERNAL_ERROR, message="Something broke")
        assert str(error) == "[9001] INTERNAL_ERROR: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Errors are ordinary exceptions."""
        with pytest.raises(IssueRankError):
            raise RecordNotFound.for_id(7)


class TestConfigError:
    """ConfigError factory method tests."""

    def test_parse_error(self) -> None:
        error = ConfigError.parse_error("/tmp/config.yaml", "bad indent")
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert error.details == {"path": "/tmp/config.yaml", "reason": "bad indent"}

    def test_invalid_value(self) -> None:
        error = ConfigError.invalid_value("scoring.max_workers", 0, "too small")
        assert error.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "scoring.max_workers" in error.message
        assert error.details["value"] == "0"

    def test_file_not_found(self) -> None:
        error = ConfigError.file_not_found("/nope.yaml")
        assert error.code == ErrorCode.CONFIG_FILE_NOT_FOUND


class TestSearchErrors:
    """Search-layer error factories."""

    def test_encoder_not_ready_while_initializing_is_retryable(self) -> None:
        error = EncoderNotReady.in_state("initializing")
        assert error.code == ErrorCode.ENCODER_NOT_READY
        assert error.retryable is True
        assert error.details == {"state": "initializing"}

    def test_encoder_not_ready_after_failure_is_not_retryable(self) -> None:
        error = EncoderNotReady.in_state("failed", "model download failed")
        assert error.retryable is False
        assert error.details["reason"] == "model download failed"

    def test_record_not_found(self) -> None:
        error = RecordNotFound.for_id(42)
        assert error.code == ErrorCode.RECORD_NOT_FOUND
        assert error.details == {"record_id": 42}

    def test_document_not_indexed(self) -> None:
        error = DocumentNotIndexed.for_id(3)
        assert error.code == ErrorCode.DOCUMENT_NOT_INDEXED
        assert "3" in error.message

    def test_internal_unexpected_carries_details(self) -> None:
        error = InternalError.unexpected("boom", stage="scoring")
        assert error.details == {"stage": "scoring"}
        assert error.message == "Internal error: boom"
