"""Pydantic schemas for create_direct_hire_application and load_document_requirements tools."""

from __future__ import annotations

from typing import Any, Optional

from schemas.common import (
    ApplicationIdMixin,
    DbPathMixin,
    NotificationItem,
    StrictIgnoreRequest,
    StrictResponse,
)


class CreateDirectHireApplicationRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for create_direct_hire_application."""

    name: str
    sex: str
    salary: float
    jobsite: str
    position: str
    salary_currency: Optional[str] = None
    job_type: Optional[str] = None
    evaluator: Optional[str] = None
    employer: Optional[str] = None
    refresh_rates: bool = False

    def application_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"db_path", "refresh_rates"}, exclude_none=True)


class CreateDirectHireApplicationResponse(StrictResponse):
    """Response schema for create_direct_hire_application."""

    application: dict[str, Any]
    notifications: list[NotificationItem] = []


class LoadDocumentRequirementsRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for load_document_requirements."""


class DocumentRequirementItem(StrictResponse):
    """One catalog requirement and its attachment state."""

    key: str
    label: str
    required: bool
    checked: bool
    file_name: Optional[str] = None
    file_id: Optional[str] = None
    meta: dict[str, str] = {}


class LoadDocumentRequirementsResponse(StrictResponse):
    """Response schema for load_document_requirements."""

    application_id: str
    loaded: bool
    requirements: list[DocumentRequirementItem]
    required_completed: int
    required_total: int
    optional_completed: int
    optional_total: int
    is_complete: bool
    notifications: list[NotificationItem] = []
