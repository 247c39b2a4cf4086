"""Pydantic schemas for upload_document tool."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator

from schemas.common import (
    ApplicationIdMixin,
    DbPathMixin,
    NotificationItem,
    StrictIgnoreRequest,
    StrictResponse,
    validate_optional_non_empty_str,
)


class UploadDocumentRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for upload_document."""

    document_key: str
    file_path: str
    content_type: Optional[str] = None
    meta: Optional[dict[str, str]] = None

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, value: str) -> str:
        return validate_optional_non_empty_str(value, "file_path")

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value, "content_type")


class UploadDocumentResponse(StrictResponse):
    """Success/blocked response schema for upload_document."""

    application_id: str
    document_key: str
    success: bool
    file_id: Optional[str] = None
    file_name: Optional[str] = None
    required_completed: int
    required_total: int
    error: Optional[str] = None
    notifications: list[NotificationItem] = []
