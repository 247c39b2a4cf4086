"""Shared schema primitives for MCP tool request/response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


def validate_optional_non_empty_str(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate optional string fields that cannot be empty/whitespace."""
    if value is None:
        return None
    if not value.strip():
        raise ValueError(f"Invalid {field_name}: cannot be empty")
    return value


class StrictIgnoreRequest(BaseModel):
    """Request base with strict typing and ignored unknown fields."""

    model_config = ConfigDict(extra="ignore", strict=True)


class StrictResponse(BaseModel):
    """Response/result base with strict typing and forbidden unknown fields."""

    model_config = ConfigDict(extra="forbid")


class DbPathMixin(BaseModel):
    """Reusable db_path field validation."""

    db_path: Optional[str] = None

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value, "db_path")


class ApplicationIdMixin(BaseModel):
    """Reusable application_id field; integer ids are normalised to strings."""

    application_id: int | str

    @field_validator("application_id")
    @classmethod
    def validate_application_id(cls, value: int | str) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("Invalid application_id: cannot be empty")
        return text


class NotificationItem(StrictResponse):
    """A notification raised while handling the request."""

    title: str
    description: str
    destructive: bool = False


class DocumentCountsResult(StrictResponse):
    """Required/optional document completion counts."""

    required_completed: int
    required_total: int
    optional_completed: int
    optional_total: int


def notifications_payload(notifier: Any) -> list[dict[str, Any]]:
    """Validated notification dicts from a RecordingNotifier."""
    return [NotificationItem(**n).model_dump() for n in notifier.to_list()]
