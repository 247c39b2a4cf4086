"""
Direct Hire application record.

Maps database rows and portal API payloads to a stable model. The
``status_checklist`` column is stored as JSON and surfaced as a
``StatusChecklist``.
"""

import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from models.checklist import StatusChecklist
from models.status import ApplicationStatus


class DirectHireApplication(BaseModel):
    """A Direct Hire application as stored by the portal."""

    model_config = ConfigDict(extra="ignore")

    id: str
    control_number: str
    name: str
    sex: Optional[str] = None
    salary: Optional[float] = None
    raw_salary: Optional[float] = None
    salary_currency: Optional[str] = None
    jobsite: Optional[str] = None
    position: Optional[str] = None
    job_type: Optional[str] = None
    evaluator: Optional[str] = None
    employer: Optional[str] = None
    status: str = ApplicationStatus.PENDING.value
    status_checklist: StatusChecklist = StatusChecklist()
    documents_completed: bool = False
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return None if value is None else str(value)

    @field_validator("status_checklist", mode="before")
    @classmethod
    def parse_checklist(cls, value):
        if isinstance(value, StatusChecklist):
            return value
        if isinstance(value, (str, bytes)):
            value = json.loads(value) if value else None
        return StatusChecklist.from_payload(value)

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"status_checklist"})
        data["status_checklist"] = self.status_checklist.to_payload()
        return data


class NewDirectHireApplication(BaseModel):
    """
    Fields accepted when creating a Direct Hire application.

    Names and places are stored upper-cased; ``salary`` is in
    ``salary_currency`` and converted to USD by the store.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    sex: str
    salary: float
    jobsite: str
    position: str
    salary_currency: str = "USD"
    job_type: Optional[str] = None
    evaluator: Optional[str] = None
    employer: Optional[str] = None

    @field_validator("name", "jobsite", "position", mode="before")
    @classmethod
    def require_upper_text(cls, value, info):
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid {info.field_name}: cannot be empty")
        return value.strip().upper()

    @field_validator("evaluator", "employer", mode="before")
    @classmethod
    def optional_upper_text(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip().upper() or None

    @field_validator("sex", mode="before")
    @classmethod
    def normalise_sex(cls, value):
        if not isinstance(value, str) or value.strip().lower() not in ("male", "female"):
            raise ValueError(f"Invalid sex: '{value}'. Allowed values: female, male")
        return value.strip().lower()

    @field_validator("salary")
    @classmethod
    def non_negative_salary(cls, value):
        if value < 0:
            raise ValueError("Invalid salary: cannot be negative")
        return value

    @field_validator("salary_currency", mode="before")
    @classmethod
    def currency_code(cls, value):
        if value is None:
            return "USD"
        if not isinstance(value, str) or len(value.strip()) != 3 or not value.strip().isalpha():
            raise ValueError(f"Invalid salary_currency: '{value}' is not an ISO 4217 code")
        return value.strip().upper()

    @field_validator("job_type", mode="before")
    @classmethod
    def normalise_job_type(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip().lower() or None
