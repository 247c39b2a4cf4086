"""
Error model for the Direct Hire checklist service.

Provides structured error codes and sanitized error messages shared by the
tracker, the coordinator, the portal gateways and the tool handlers.
"""

import os
import re
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Structured error codes surfaced to callers."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DOCUMENT_REQUIRED = "DOCUMENT_REQUIRED"
    CANNOT_UNCHECK = "CANNOT_UNCHECK"
    REQUIREMENTS_INCOMPLETE = "REQUIREMENTS_INCOMPLETE"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    DB_NOT_FOUND = "DB_NOT_FOUND"
    DB_ERROR = "DB_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PortalError(Exception):
    """Base exception for portal errors with structured error information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a portal error.

        Args:
            code: The error code
            message: Human-readable error message
            retryable: Whether the operation can be retried
            original_error: The original exception if this wraps another error
            details: Optional structured context (e.g. id of a conflicting document)
        """
        self.code = code
        self.message = message
        self.retryable = retryable
        self.original_error = original_error
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary format for tool responses."""
        error = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


def sanitize_path(path: str) -> str:
    """
    Sanitize file paths to avoid exposing sensitive system details.

    Returns only the basename for absolute paths, keeps relative paths.
    """
    if os.path.isabs(path):
        return os.path.basename(path)
    return path


def sanitize_sql_error(error_msg: str) -> str:
    """
    Sanitize SQL error messages to remove sensitive details.

    Removes SQL fragments and absolute paths, keeping only actionable information.

    Args:
        error_msg: The original error message

    Returns:
        Sanitized error message
    """
    sanitized = re.sub(r"SQL:.*", "", error_msg, flags=re.IGNORECASE)
    sanitized = re.sub(r'"[^"]*SELECT[^"]*"', "[SQL query]", sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(r"'[^']*SELECT[^']*'", "[SQL query]", sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(
        r"\b(SELECT|INSERT|UPDATE|DELETE)\b.*", "[SQL query]", sanitized, flags=re.IGNORECASE
    )
    sanitized = re.sub(r"/[^\s]+/", "[path]/", sanitized)

    return sanitized.strip()


def sanitize_stack_trace(error_msg: str) -> str:
    """Keep only the first line of a multi-line error message."""
    lines = error_msg.split("\n")
    if lines:
        return lines[0].strip()
    return error_msg


def create_validation_error(message: str) -> PortalError:
    """
    Create a validation error.

    Args:
        message: Description of the validation failure

    Returns:
        PortalError with VALIDATION_ERROR code
    """
    return PortalError(code=ErrorCode.VALIDATION_ERROR, message=message, retryable=False)


def create_document_required_error(document_key: str) -> PortalError:
    """Create the error reported when a requirement is checked without an attachment."""
    return PortalError(
        code=ErrorCode.DOCUMENT_REQUIRED,
        message=f"Document required: attach a file for '{document_key}' before checking it",
        retryable=False,
    )


def create_cannot_uncheck_error(milestone: str) -> PortalError:
    """Create the error reported when a persisted milestone would be unchecked."""
    return PortalError(
        code=ErrorCode.CANNOT_UNCHECK,
        message=f"Cannot uncheck status '{milestone}': once saved it cannot be unchecked",
        retryable=False,
    )


def create_requirements_incomplete_error(completed: int, total: int) -> PortalError:
    """Create the error reported when required documents are still missing."""
    return PortalError(
        code=ErrorCode.REQUIREMENTS_INCOMPLETE,
        message=f"Requirements incomplete: {completed}/{total} required documents attached",
        retryable=False,
        details={"required_completed": completed, "required_total": total},
    )


def create_upload_error(message: str, original_error: Optional[Exception] = None) -> PortalError:
    """Create an upload error. Uploads are always safe to retry."""
    return PortalError(
        code=ErrorCode.UPLOAD_ERROR,
        message=f"Upload failed: {sanitize_stack_trace(message)}",
        retryable=True,
        original_error=original_error,
    )


def create_not_found_error(resource: str, identifier: str) -> PortalError:
    """Create a not-found error for an application or document."""
    return PortalError(
        code=ErrorCode.NOT_FOUND,
        message=f"{resource} not found: {identifier}",
        retryable=False,
    )


def create_conflict_error(
    message: str, existing_id: Optional[str] = None, **existing_ids: Optional[str]
) -> PortalError:
    """
    Create a conflict error.

    Args:
        message: Description of the conflict
        existing_id: Identifier of the resource that already exists
        **existing_ids: Further identifiers when several resources conflict
            (e.g. ``existing_oec_id``); None values are dropped

    Returns:
        PortalError with CONFLICT code
    """
    ids = {"existing_id": existing_id, **existing_ids}
    details = {key: value for key, value in ids.items() if value is not None} or None
    return PortalError(
        code=ErrorCode.CONFLICT, message=message, retryable=False, details=details
    )


def create_network_error(message: str, original_error: Optional[Exception] = None) -> PortalError:
    """Create a network error for transport failures talking to the portal API."""
    return PortalError(
        code=ErrorCode.NETWORK_ERROR,
        message=f"Network error: {sanitize_stack_trace(message)}",
        retryable=True,
        original_error=original_error,
    )


def create_upstream_error(
    message: str, status_code: Optional[int] = None, original_error: Optional[Exception] = None
) -> PortalError:
    """Create an error for an unexpected portal API response."""
    prefix = f"Portal API error ({status_code})" if status_code else "Portal API error"
    return PortalError(
        code=ErrorCode.UPSTREAM_ERROR,
        message=f"{prefix}: {sanitize_stack_trace(message)}",
        retryable=status_code is None or status_code >= 500,
        original_error=original_error,
    )


def create_file_not_found_error(file_path: str, file_type: str = "File") -> PortalError:
    """
    Create a file not found error.

    Args:
        file_path: The file path that was not found
        file_type: Type of file (e.g., "Upload file", "Stored document")

    Returns:
        PortalError with FILE_NOT_FOUND code
    """
    return PortalError(
        code=ErrorCode.FILE_NOT_FOUND,
        message=f"{file_type} not found: {sanitize_path(file_path)}",
        retryable=False,
    )


def create_db_not_found_error(db_path: str) -> PortalError:
    """Create a database not found error."""
    return PortalError(
        code=ErrorCode.DB_NOT_FOUND,
        message=f"Database not found: {sanitize_path(db_path)}",
        retryable=False,
    )


def create_db_error(
    message: str, retryable: bool = False, original_error: Optional[Exception] = None
) -> PortalError:
    """
    Create a database error.

    Args:
        message: Description of the database error
        retryable: Whether the operation can be retried
        original_error: The original exception

    Returns:
        PortalError with DB_ERROR code
    """
    sanitized_message = sanitize_sql_error(message)
    sanitized_message = sanitize_stack_trace(sanitized_message)

    return PortalError(
        code=ErrorCode.DB_ERROR,
        message=f"Database error: {sanitized_message}",
        retryable=retryable,
        original_error=original_error,
    )


def create_internal_error(message: str, original_error: Optional[Exception] = None) -> PortalError:
    """Create an internal error for unexpected exceptions."""
    return PortalError(
        code=ErrorCode.INTERNAL_ERROR,
        message=f"Internal error: {sanitize_stack_trace(message)}",
        retryable=True,
        original_error=original_error,
    )
