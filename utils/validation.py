"""
Input validation functions for the checklist tools.

Validators raise ``PortalError`` with VALIDATION_ERROR so tool handlers can
return them unchanged.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from models.document import CATALOG_BY_KEY, CONTRACT_VERIFICATION_CHOICES, VISA_CATEGORIES
from models.errors import create_validation_error
from models.status import Milestone


def validate_application_id(application_id) -> str:
    """
    Validate an application identifier.

    Identifiers are opaque (integer or UUID strings); only emptiness and type
    are checked here.

    Raises:
        PortalError: If application_id is missing or not a string/int
    """
    if application_id is None:
        raise create_validation_error("Invalid application_id: cannot be null")

    if isinstance(application_id, bool) or not isinstance(application_id, (str, int)):
        raise create_validation_error(
            f"Invalid application_id type: expected string, got {type(application_id).__name__}"
        )

    value = str(application_id).strip()
    if not value:
        raise create_validation_error("Invalid application_id: cannot be empty")

    return value


def validate_milestone(milestone) -> Milestone:
    """
    Validate a milestone key against the status checklist.

    Raises:
        PortalError: If the milestone is unknown
    """
    if isinstance(milestone, Milestone):
        return milestone

    if not isinstance(milestone, str):
        raise create_validation_error(
            f"Invalid milestone type: expected string, got {type(milestone).__name__}"
        )

    try:
        return Milestone(milestone.strip())
    except ValueError:
        allowed = ", ".join(m.value for m in Milestone)
        raise create_validation_error(
            f"Invalid milestone: '{milestone}'. Allowed values: {allowed}"
        ) from None


def validate_document_key(document_key) -> str:
    """
    Validate a document requirement key against the catalog.

    Raises:
        PortalError: If the key is not part of the catalog
    """
    if not isinstance(document_key, str) or not document_key.strip():
        raise create_validation_error("Invalid document_key: cannot be empty")

    key = document_key.strip()
    if key not in CATALOG_BY_KEY:
        allowed = ", ".join(CATALOG_BY_KEY)
        raise create_validation_error(
            f"Invalid document_key: '{document_key}'. Allowed values: {allowed}"
        )
    return key


def validate_document_meta(document_key: str, meta: Optional[Dict[str, str]]) -> Dict[str, str]:
    """
    Validate structured metadata sent with an upload.

    Only the catalog's metadata fields for ``document_key`` are accepted.
    A contract verification method may be given by key or by label and is
    stored as its key; visa categories must be known.

    Raises:
        PortalError: If a field is unknown or a value is invalid
    """
    if not meta:
        return {}

    allowed = CATALOG_BY_KEY[validate_document_key(document_key)].meta_fields
    cleaned: Dict[str, str] = {}
    for field, value in meta.items():
        if field not in allowed:
            allowed_text = ", ".join(allowed) if allowed else "none"
            raise create_validation_error(
                f"Invalid meta field '{field}' for {document_key}. Allowed fields: {allowed_text}"
            )
        if value is None or str(value).strip() == "":
            continue
        cleaned[field] = str(value).strip()

    choice = cleaned.get("ec_verified_polo_check")
    if choice is not None and choice not in CONTRACT_VERIFICATION_CHOICES:
        by_label = {label: key for key, label in CONTRACT_VERIFICATION_CHOICES.items()}
        if choice not in by_label:
            raise create_validation_error(
                f"Invalid ec_verified_polo_check: '{choice}'. "
                f"Allowed values: {', '.join(CONTRACT_VERIFICATION_CHOICES)}"
            )
        cleaned["ec_verified_polo_check"] = by_label[choice]

    category = cleaned.get("visa_category")
    if category is not None:
        if category.lower() not in VISA_CATEGORIES:
            raise create_validation_error(
                f"Invalid visa_category: '{category}'. Allowed values: {', '.join(VISA_CATEGORIES)}"
            )
        cleaned["visa_category"] = category.lower()

    return cleaned


def get_current_utc_timestamp() -> str:
    """
    Generate a UTC timestamp in ISO 8601 format with millisecond precision.

    Returns a timestamp string in the format: YYYY-MM-DDTHH:MM:SS.mmmZ
    Example: 2026-02-04T03:47:36.966Z
    """
    return format_utc_timestamp(datetime.now(timezone.utc))


def format_utc_timestamp(moment: datetime) -> str:
    """Format an aware datetime as YYYY-MM-DDTHH:MM:SS.mmmZ (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
