"""
Details captured when completing the For Confirmation and For Interview steps.

``ConfirmationDetails`` records who verified the employment contract and is
stored on the status checklist as ``for_confirmation_meta``.
``InterviewDetails`` carries the processed-worker counts printed on the OEC
memorandum and is stored as ``for_interview_meta``. Both double as the body
of the matching document generation request.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class VerifierType(str, Enum):
    """Office that verified the employment contract."""

    MWO = "MWO"
    PEPCG = "PEPCG"
    OTHERS = "OTHERS"


VERIFIER_LABELS: Dict[VerifierType, str] = {
    VerifierType.MWO: "Migrant Workers Office (MWO)",
    VerifierType.PEPCG: "Philippine Embassy/Consulate (PE/PCG)",
    VerifierType.OTHERS: "Others",
}


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _merge_sources(given: Mapping[str, Any], stored: Any) -> Dict[str, Any]:
    merged = dict(stored) if isinstance(stored, Mapping) else {}
    merged.update({key: value for key, value in given.items() if value is not None})
    return merged


class ConfirmationDetails(BaseModel):
    """Verification of the employment contract for the confirmation document."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    verifier_type: Optional[VerifierType] = None
    verifier_office: Optional[str] = None
    pe_pcg_city: Optional[str] = None
    others_text: Optional[str] = None
    verified_date: Optional[str] = None
    verification_image_id: Optional[str] = None
    verification_image_name: Optional[str] = None

    @field_validator("verifier_type", mode="before")
    @classmethod
    def normalise_verifier_type(cls, value):
        text = _clean_text(value)
        if text is None:
            return None
        text = text.upper()
        if text not in {member.value for member in VerifierType}:
            raise ValueError(f"Invalid verifier_type: '{value}' (expected MWO, PEPCG or OTHERS)")
        return text

    @field_validator(
        "verifier_office",
        "pe_pcg_city",
        "others_text",
        "verified_date",
        "verification_image_id",
        "verification_image_name",
        mode="before",
    )
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value)

    @model_validator(mode="after")
    def require_verifier_details(self):
        if self.verifier_type is None:
            raise ValueError("Missing verifier_type")
        if self.verifier_type == VerifierType.MWO and not self.verifier_office:
            raise ValueError("Missing verifier_office for MWO")
        if self.verifier_type == VerifierType.PEPCG and not self.pe_pcg_city:
            raise ValueError("Missing pe_pcg_city for PE/PCG")
        if self.verifier_type == VerifierType.OTHERS and not self.others_text:
            raise ValueError("Missing others_text for Others")
        return self

    @classmethod
    def from_sources(
        cls, given: Mapping[str, Any], stored: Any = None
    ) -> "ConfirmationDetails":
        """
        Build details from the fields given now, falling back to a stored record.

        Raises:
            ValidationError: If the merged fields do not describe a verifier
        """
        return cls.model_validate(_merge_sources(given, stored))

    @property
    def verifier_label(self) -> str:
        return VERIFIER_LABELS[self.verifier_type]

    def to_meta(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InterviewDetails(BaseModel):
    """Processed-worker counts for the For Interview documents."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    processed_workers_principal: int
    processed_workers_las: int
    screenshot_id: Optional[str] = None
    screenshot_name: Optional[str] = None

    @field_validator("processed_workers_principal", "processed_workers_las", mode="before")
    @classmethod
    def non_negative_count(cls, value, info):
        message = f"Invalid {info.field_name}: enter a non-negative whole number"
        if isinstance(value, bool) or value is None:
            raise ValueError(message)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or value < 0:
            raise ValueError(message)
        return value

    @field_validator("screenshot_id", "screenshot_name", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value)

    @classmethod
    def from_sources(cls, given: Mapping[str, Any], stored: Any = None) -> "InterviewDetails":
        """Fields given now win over the stored ``for_interview_meta`` record."""
        return cls.model_validate(_merge_sources(given, stored))

    def to_meta(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_request(self) -> Dict[str, int]:
        return {
            "processed_workers_principal": self.processed_workers_principal,
            "processed_workers_las": self.processed_workers_las,
        }
