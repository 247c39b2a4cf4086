"""
Document requirement catalog and document records for Direct Hire evaluation.

The catalog is fixed: four required and eight optional supporting documents.
``DocumentRequirement`` is the per-session tracker entry derived from it;
``StoredDocument`` is the record owned by the documents store.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.errors import create_file_not_found_error

# Document types of generated documents
EVALUATION_CHECKLIST_DOCUMENT_TYPE = "evaluation_requirements_checklist"
CONFIRMATION_DOCUMENT_TYPE = "confirmation"
OEC_MEMORANDUM_DOCUMENT_TYPE = "issuance_of_oec_memorandum"
ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE = "attachments_screenshots"
GENERATED_DOCUMENT_TYPES = (
    EVALUATION_CHECKLIST_DOCUMENT_TYPE,
    CONFIRMATION_DOCUMENT_TYPE,
    OEC_MEMORANDUM_DOCUMENT_TYPE,
    ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE,
)

# Screenshots uploaded while confirming and scheduling the interview
VERIFICATION_IMAGE_DOCUMENT_TYPE = "confirmation_verification_image"
INTERVIEW_SCREENSHOT_DOCUMENT_TYPE = "for_interview_screenshot"


@dataclass(frozen=True)
class RequirementSpec:
    """Catalog entry describing one supporting document type."""

    key: str
    label: str
    required: bool
    description: Optional[str] = None
    meta_fields: Tuple[str, ...] = ()


DOCUMENT_CATALOG: Tuple[RequirementSpec, ...] = (
    RequirementSpec(
        key="passport",
        label="Passport",
        required=True,
        description="Validity period of not less than 1 year (POEA Advisory 42, series of 2019)",
        meta_fields=("passport_number", "passport_expiry"),
    ),
    RequirementSpec(
        key="work_visa",
        label="Valid Work Visa, Entry/Work Permit",
        required=True,
        description="Whichever is applicable per country",
        meta_fields=("visa_category", "visa_type", "visa_validity"),
    ),
    RequirementSpec(
        key="employment_contract",
        label="Employment Contract or Offer of Employment",
        required=True,
        description=(
            "Original copy and verified by POLO/PE/Consulate/Apostille/Notarized/"
            "Notice of Appointment."
        ),
        meta_fields=("ec_verified_polo_check", "ec_issued_date"),
    ),
    RequirementSpec(
        key="country_specific",
        label="Additional country-specific requirements",
        required=False,
    ),
    RequirementSpec(
        key="tesda_license",
        label="TESDA NC II/PRC License",
        required=True,
    ),
    RequirementSpec(
        key="compliance_form",
        label="Compliance Form",
        required=False,
        description="Print from MWPS-Direct if necessary",
    ),
    RequirementSpec(
        key="medical_certificate",
        label="Valid Medical Certificate",
        required=False,
        description="DOH-accredited medical clinic authorized to conduct medical exam for OFWs.",
    ),
    RequirementSpec(
        key="peos_certificate",
        label="Pre-Employment Orientation Seminar Certificate (PEOS)",
        required=False,
    ),
    RequirementSpec(
        key="clearance",
        label="Clearance",
        required=False,
    ),
    RequirementSpec(
        key="insurance_coverage",
        label="Proof of certificate of insurance coverage",
        required=False,
        description="Covering at least the benefits provided under Section 37-A of R.A. 8042 as amended.",
    ),
    RequirementSpec(
        key="eregistration",
        label="E-Registration Account",
        required=False,
        description="Print from MWPS-Direct Registration Form",
    ),
    RequirementSpec(
        key="pdos_certificate",
        label="Pre-Departure Orientation Seminar",
        required=False,
        description="Issued by OWWA.",
    ),
)

CATALOG_BY_KEY: Dict[str, RequirementSpec] = {spec.key: spec for spec in DOCUMENT_CATALOG}
REQUIRED_DOCUMENT_KEYS: Tuple[str, ...] = tuple(s.key for s in DOCUMENT_CATALOG if s.required)
OPTIONAL_DOCUMENT_KEYS: Tuple[str, ...] = tuple(s.key for s in DOCUMENT_CATALOG if not s.required)

# Verification methods offered for the employment contract
CONTRACT_VERIFICATION_CHOICES: Dict[str, str] = {
    "verified_polo": "POLO",
    "verified_pe_consulate": "PE/Consulate for countries with no POLO",
    "apostille_polo_verification": "Apostille with POLO Verification",
    "apostille_pe_ack": "Apostille with PE Acknowledgement",
    "notarized_dfa": "Notarized Employment Contract for DFA",
    "notice_appointment_spain": (
        "Notice of Appointment with confirmation from SPAIN Embassy for JET Recipients"
    ),
    "confirmation_sem": "Employment Contract with confirmation from SEM",
}

VISA_CATEGORIES = ("temporary", "immigrant", "family")


@dataclass
class StagedFile:
    """A file chosen for upload but not yet sent to the documents store."""

    file_name: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(
        cls, path: Union[str, Path], content_type: Optional[str] = None
    ) -> "StagedFile":
        """
        Read a file from disk, guessing its MIME type from the extension.

        Raises:
            PortalError: FILE_NOT_FOUND if the path is not a regular file
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise create_file_not_found_error(str(file_path), "Upload file")
        guessed = content_type or mimetypes.guess_type(file_path.name)[0]
        return cls(
            file_name=file_path.name,
            content_type=guessed or "application/octet-stream",
            content=file_path.read_bytes(),
        )


@dataclass
class DocumentRequirement:
    """Tracker entry: one catalog document and its attachment state."""

    key: str
    label: str
    required: bool
    description: Optional[str] = None
    checked: bool = False
    file_name: Optional[str] = None
    file_id: Optional[str] = None
    meta: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_spec(cls, spec: RequirementSpec) -> "DocumentRequirement":
        return cls(
            key=spec.key,
            label=spec.label,
            required=spec.required,
            description=spec.description,
        )

    @property
    def has_attachment(self) -> bool:
        return self.file_id is not None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "required": self.required,
            "checked": self.checked,
            "file_name": self.file_name,
            "file_id": self.file_id,
            "meta": dict(self.meta),
        }


class StoredDocument(BaseModel):
    """Document record as returned by the documents store."""

    model_config = ConfigDict(extra="ignore")

    id: str
    document_type: str
    file_name: str
    meta: Dict[str, str] = Field(default_factory=dict)
    application_id: Optional[str] = None
    application_type: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: Optional[str] = None

    @field_validator("id", "application_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        # Stores hand out integer or UUID ids; keep them opaque strings.
        if value is None:
            return None
        return str(value)

    @field_validator("meta", mode="before")
    @classmethod
    def coerce_meta(cls, value):
        if not value:
            return {}
        return {str(k): "" if v is None else str(v) for k, v in dict(value).items()}
