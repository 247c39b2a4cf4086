"""Pydantic schemas for update_status_checklist and generate_evaluation_checklist tools."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import field_validator

from schemas.common import (
    ApplicationIdMixin,
    DbPathMixin,
    DocumentCountsResult,
    NotificationItem,
    StrictIgnoreRequest,
    StrictResponse,
)


class MilestoneChange(StrictIgnoreRequest):
    """One requested milestone value."""

    milestone: str
    checked: bool


class UpdateStatusChecklistRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for update_status_checklist."""

    changes: list[Any]
    confirm: bool = False
    dry_run: bool = False
    generate_document: bool = False

    @field_validator("changes")
    @classmethod
    def validate_changes(cls, value: list[Any]) -> list[MilestoneChange]:
        if not value:
            raise ValueError("Invalid changes: cannot be empty")

        parsed = []
        for index, item in enumerate(value):
            if isinstance(item, MilestoneChange):
                parsed.append(item)
                continue
            if not isinstance(item, dict):
                raise ValueError(f"Invalid changes[{index}]: expected an object")
            milestone = item.get("milestone")
            checked = item.get("checked")
            if not isinstance(milestone, str) or not milestone.strip():
                raise ValueError(f"Invalid changes[{index}].milestone: must be a non-empty string")
            if not isinstance(checked, bool):
                raise ValueError(f"Invalid changes[{index}].checked: must be a boolean")
            parsed.append(MilestoneChange(milestone=milestone, checked=checked))
        return parsed


class MilestoneChangeResult(StrictResponse):
    """Per-change policy result."""

    milestone: str
    checked: bool
    action: str
    allowed: bool
    error: Optional[str] = None


class UpdateStatusChecklistResponse(StrictResponse):
    """Response schema for update_status_checklist."""

    application_id: str
    outcome: str
    success: bool
    dry_run: bool
    current_status: str
    persisted: dict[str, Any]
    draft: dict[str, Any]
    pending_milestones: list[str]
    changes: list[MilestoneChangeResult]
    document_counts: DocumentCountsResult
    generation: Optional[str] = None
    error: Optional[str] = None
    notifications: list[NotificationItem] = []


class GenerateEvaluationChecklistRequest(ApplicationIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for generate_evaluation_checklist."""

    override: bool = True


class GenerateEvaluationChecklistResponse(StrictResponse):
    """Response schema for generate_evaluation_checklist."""

    application_id: str
    outcome: str
    success: bool
    document_counts: DocumentCountsResult
    error: Optional[str] = None
    notifications: list[NotificationItem] = []
