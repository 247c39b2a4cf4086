"""
Unit tests for error model and sanitization functions.

Tests error codes, error structure, and message sanitization.
"""

import pytest
from models.errors import (
    ErrorCode,
    PortalError,
    sanitize_path,
    sanitize_sql_error,
    sanitize_stack_trace,
    create_validation_error,
    create_document_required_error,
    create_cannot_uncheck_error,
    create_requirements_incomplete_error,
    create_upload_error,
    create_not_found_error,
    create_conflict_error,
    create_network_error,
    create_upstream_error,
    create_file_not_found_error,
    create_db_not_found_error,
    create_db_error,
    create_internal_error,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_checklist_error_codes_exist(self):
        assert ErrorCode.DOCUMENT_REQUIRED == "DOCUMENT_REQUIRED"
        assert ErrorCode.CANNOT_UNCHECK == "CANNOT_UNCHECK"
        assert ErrorCode.REQUIREMENTS_INCOMPLETE == "REQUIREMENTS_INCOMPLETE"
        assert ErrorCode.UPLOAD_ERROR == "UPLOAD_ERROR"
        assert ErrorCode.CONFLICT == "CONFLICT"

    def test_error_codes_are_strings(self):
        """Test that error codes are string values."""
        for code in ErrorCode:
            assert isinstance(code.value, str)


class TestPortalError:
    """Tests for PortalError exception class."""

    def test_portal_error_creation(self):
        error = PortalError(code=ErrorCode.VALIDATION_ERROR, message="Test error")

        assert error.code == ErrorCode.VALIDATION_ERROR
        assert error.message == "Test error"
        assert error.retryable is False
        assert error.original_error is None
        assert error.details == {}
        assert str(error) == "Test error"

    def test_to_dict_without_details(self):
        error = PortalError(code=ErrorCode.NOT_FOUND, message="missing")
        assert error.to_dict() == {
            "error": {"code": "NOT_FOUND", "message": "missing", "retryable": False}
        }

    def test_to_dict_with_details(self):
        error = PortalError(
            code=ErrorCode.CONFLICT, message="exists", details={"existing_id": "9"}
        )
        assert error.to_dict()["error"]["details"] == {"existing_id": "9"}

    def test_can_be_raised_and_caught(self):
        with pytest.raises(PortalError) as exc_info:
            raise create_validation_error("bad")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


class TestSanitization:
    """Tests for message sanitization helpers."""

    def test_sanitize_absolute_path(self):
        assert sanitize_path("/home/staff/uploads/passport.pdf") == "passport.pdf"

    def test_sanitize_relative_path_unchanged(self):
        assert sanitize_path("data/portal.db") == "data/portal.db"

    def test_sanitize_sql_error_removes_query(self):
        message = sanitize_sql_error("near syntax: SELECT * FROM documents WHERE id = 1")
        assert "SELECT" not in message
        assert "documents" not in message

    def test_sanitize_sql_error_removes_paths(self):
        message = sanitize_sql_error("unable to open /var/lib/portal/portal.db")
        assert "/var/lib/portal/" not in message

    def test_sanitize_stack_trace_keeps_first_line(self):
        assert sanitize_stack_trace("first line\n  File x.py\n  more") == "first line"


class TestChecklistErrors:
    """Tests for the checklist-specific error factories."""

    def test_document_required_error(self):
        error = create_document_required_error("passport")
        assert error.code == ErrorCode.DOCUMENT_REQUIRED
        assert "passport" in error.message
        assert error.retryable is False

    def test_cannot_uncheck_error(self):
        error = create_cannot_uncheck_error("Evaluated")
        assert error.code == ErrorCode.CANNOT_UNCHECK
        assert "Evaluated" in error.message
        assert "cannot be unchecked" in error.message

    def test_requirements_incomplete_error_carries_counts(self):
        error = create_requirements_incomplete_error(2, 4)
        assert error.code == ErrorCode.REQUIREMENTS_INCOMPLETE
        assert "2/4" in error.message
        assert error.details == {"required_completed": 2, "required_total": 4}

    def test_upload_error_is_retryable(self):
        error = create_upload_error("disk full\ntraceback")
        assert error.code == ErrorCode.UPLOAD_ERROR
        assert error.retryable is True
        assert error.message == "Upload failed: disk full"

    def test_not_found_error(self):
        error = create_not_found_error("Direct hire application", "42")
        assert error.message == "Direct hire application not found: 42"
        assert error.retryable is False

    def test_conflict_error_with_existing_id(self):
        error = create_conflict_error("Checklist already exists", existing_id="17")
        assert error.code == ErrorCode.CONFLICT
        assert error.details == {"existing_id": "17"}

    def test_conflict_error_without_existing_id(self):
        assert create_conflict_error("exists").details == {}

    def test_conflict_error_with_several_existing_documents(self):
        error = create_conflict_error(
            "For Interview documents already exist", existing_oec_id="9", existing_attach_id=None
        )
        assert error.details == {"existing_oec_id": "9"}


class TestTransportErrors:
    """Tests for network and upstream error factories."""

    def test_network_error_is_retryable(self):
        error = create_network_error("connection refused")
        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.retryable is True
        assert "connection refused" in error.message

    @pytest.mark.parametrize(
        "status_code,retryable",
        [(None, True), (500, True), (503, True), (401, False), (422, False)],
    )
    def test_upstream_error_retryable_by_status(self, status_code, retryable):
        error = create_upstream_error("boom", status_code=status_code)
        assert error.code == ErrorCode.UPSTREAM_ERROR
        assert error.retryable is retryable

    def test_upstream_error_includes_status(self):
        assert "(502)" in create_upstream_error("bad gateway", status_code=502).message


class TestStorageErrors:
    """Tests for file and database error factories."""

    def test_file_not_found_error_hides_directories(self):
        error = create_file_not_found_error("/tmp/secret/passport.pdf", "Upload file")
        assert error.code == ErrorCode.FILE_NOT_FOUND
        assert error.message == "Upload file not found: passport.pdf"

    def test_db_not_found_error(self):
        error = create_db_not_found_error("/srv/data/portal.db")
        assert error.code == ErrorCode.DB_NOT_FOUND
        assert error.message == "Database not found: portal.db"

    def test_db_error_is_sanitized(self):
        error = create_db_error("no such table: documents\nSQL: SELECT 1", retryable=True)
        assert error.code == ErrorCode.DB_ERROR
        assert error.retryable is True
        assert error.message.startswith("Database error: no such table")
        assert "SELECT" not in error.message

    def test_internal_error(self):
        original = RuntimeError("kaboom")
        error = create_internal_error("kaboom", original_error=original)
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.retryable is True
        assert error.original_error is original
