"""Pydantic schemas for generate_confirmation_document and generate_interview_documents tools."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import field_validator

from schemas.common import (
    ApplicationIdMixin,
    DbPathMixin,
    NotificationItem,
    StrictIgnoreRequest,
    StrictResponse,
    validate_optional_non_empty_str,
)


class GenerateConfirmationDocumentRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for generate_confirmation_document."""

    verifier_type: Optional[str] = None
    verifier_office: Optional[str] = None
    pe_pcg_city: Optional[str] = None
    others_text: Optional[str] = None
    verified_date: Optional[str] = None
    image_path: Optional[str] = None
    image_content_type: Optional[str] = None
    mark_confirmed: bool = True
    override: bool = True

    @field_validator("image_path", "image_content_type")
    @classmethod
    def validate_optional_text(cls, value: Optional[str], info) -> Optional[str]:
        return validate_optional_non_empty_str(value, info.field_name)

    def details(self) -> dict[str, Any]:
        """Verifier fields that were given; the rest fall back to the stored meta."""
        return self.model_dump(
            include={"verifier_type", "verifier_office", "pe_pcg_city", "others_text", "verified_date"},
            exclude_none=True,
        )


class GenerateInterviewDocumentsRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for generate_interview_documents."""

    processed_workers_principal: Optional[int] = None
    processed_workers_las: Optional[int] = None
    screenshot_path: Optional[str] = None
    screenshot_content_type: Optional[str] = None
    mark_status: bool = True
    override: bool = True

    @field_validator("screenshot_path", "screenshot_content_type")
    @classmethod
    def validate_optional_text(cls, value: Optional[str], info) -> Optional[str]:
        return validate_optional_non_empty_str(value, info.field_name)

    def details(self) -> dict[str, Any]:
        return self.model_dump(
            include={"processed_workers_principal", "processed_workers_las"}, exclude_none=True
        )


class GeneratedDocumentItem(StrictResponse):
    id: str
    document_type: str
    file_name: str


class StepDocumentsResponse(StrictResponse):
    """Response schema shared by the For Confirmation and For Interview tools."""

    application_id: str
    outcome: str
    success: bool
    current_status: str
    persisted: dict[str, Any]
    documents: list[GeneratedDocumentItem] = []
    error: Optional[str] = None
    notifications: list[NotificationItem] = []
