"""
Evaluation requirements checklist renderer.

Renders the generated checklist document for a Direct Hire application as
markdown with YAML frontmatter: applicant fields in the frontmatter, one
table row per catalog requirement in the body.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from models.application import DirectHireApplication
from models.document import (
    CONTRACT_VERIFICATION_CHOICES,
    DOCUMENT_CATALOG,
    EVALUATION_CHECKLIST_DOCUMENT_TYPE,
    StoredDocument,
)
from utils.currency import convert_from_usd, convert_to_usd, format_currency, get_usd_equivalent

CHECK_MARK = "✓"
ATTACHED = "ATTACHED"

# Legacy document types accepted for each catalog key
REQUIREMENT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "passport": ("passport", "valid_passport", "passport_copy"),
    "work_visa": ("work_visa", "visa", "visa_work_permit", "entry_permit"),
    "employment_contract": ("employment_contract", "offer_of_employment"),
    "tesda_license": ("tesda_license", "tesda", "prc_license"),
}


def evaluation_checklist_file_name(control_number: str) -> str:
    """
    Examples:
        >>> evaluation_checklist_file_name("DHPSW-ROIVA-2025-0307-004-058")
        'DH-DHPSW-ROIVA-2025-0307-004-058-evaluation-requirements-checklist.md'
    """
    return f"DH-{control_number}-evaluation-requirements-checklist.md"


def format_long_date(value: Optional[str]) -> str:
    """
    Format an ISO date or timestamp as ``YYYY MONTH DD``.

    Unparseable values are returned unchanged; empty values become ''.

    Examples:
        >>> format_long_date("2025-03-07T10:15:00Z")
        '2025 MARCH 07'
        >>> format_long_date("next week")
        'next week'
    """
    if not value:
        return ""
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        try:
            parsed = date.fromisoformat(text[:10])
        except ValueError:
            return text
    return f"{parsed.year} {parsed.strftime('%B').upper()} {parsed.day:02d}"


def find_document(
    documents: Iterable[StoredDocument], requirement_key: str
) -> Optional[StoredDocument]:
    """First document (in the given order) matching the key or one of its aliases."""
    accepted = {t.lower() for t in REQUIREMENT_ALIASES.get(requirement_key, (requirement_key,))}
    for document in documents:
        if document.document_type.lower() in accepted:
            return document
    return None


def _verification_label(choice: str) -> str:
    if choice in CONTRACT_VERIFICATION_CHOICES:
        return CONTRACT_VERIFICATION_CHOICES[choice]
    return choice


def _details(key: str, meta: Dict[str, str]) -> str:
    parts: List[str] = []
    if key == "passport":
        if meta.get("passport_number"):
            parts.append(f"No. {meta['passport_number']}")
        if meta.get("passport_expiry"):
            parts.append(f"valid until {format_long_date(meta['passport_expiry'])}")
    elif key == "work_visa":
        if meta.get("visa_category"):
            parts.append(meta["visa_category"].capitalize())
        if meta.get("visa_type"):
            parts.append(meta["visa_type"])
        if meta.get("visa_validity"):
            parts.append(f"valid until {format_long_date(meta['visa_validity'])}")
    elif key == "employment_contract":
        choice = meta.get("ec_verified_polo_check") or meta.get("ec_verification") or ""
        if choice:
            parts.append(_verification_label(choice))
        if meta.get("ec_issued_date"):
            parts.append(f"issued {format_long_date(meta['ec_issued_date'])}")
    return "; ".join(parts)


def salary_fields(application: DirectHireApplication) -> Dict[str, str]:
    """
    Salary in USD plus the offered amount in its original currency.

    The offered amount is ``raw_salary`` when stored, otherwise the USD
    salary converted back into ``salary_currency``.

    Examples:
        >>> salary_fields(DirectHireApplication(id="1", control_number="CN", name="A", salary=1500))
        {'salary': '1500.00', 'salary_currency': 'USD', 'salary_usd': '$1,500.00', 'offered_salary': '$1,500.00'}
    """
    currency = (application.salary_currency or "USD").upper()
    raw = application.raw_salary
    usd = application.salary
    if usd is None and raw is None:
        return {"salary": "", "salary_currency": "USD", "salary_usd": "", "offered_salary": ""}
    if raw is None:
        raw = convert_from_usd(usd, currency)
    if usd is None:
        usd_display = get_usd_equivalent(raw, currency)
        usd = convert_to_usd(raw, currency)
    else:
        usd_display = format_currency(usd, "USD")
    return {
        "salary": f"{usd:.2f}",
        "salary_currency": "USD",
        "salary_usd": usd_display,
        "offered_salary": format_currency(raw, currency),
    }


def application_frontmatter(
    application: DirectHireApplication, document_type: str, today: Optional[date] = None
) -> Dict[str, str]:
    """Applicant fields shared by every generated document's frontmatter."""
    created = application.created_at or (today or date.today()).isoformat()
    return {
        "document_type": document_type,
        "control_number": application.control_number,
        "name": application.name,
        "employer": application.employer or "",
        "jobsite": application.jobsite or "",
        "position": application.position or "",
        **salary_fields(application),
        "evaluator": application.evaluator or "",
        "created_date": format_long_date(created),
    }


def render_evaluation_checklist(
    application: DirectHireApplication,
    documents: List[StoredDocument],
    today: Optional[date] = None,
) -> str:
    """
    Render the evaluation requirements checklist for an application.

    Args:
        application: The Direct Hire application
        documents: Documents attached to the application, newest first
        today: Fallback creation date when the application has none

    Returns:
        Complete markdown content as string

    Examples:
        >>> app = DirectHireApplication(id="1", control_number="CN", name="JUAN")
        >>> content = render_evaluation_checklist(app, [], today=date(2025, 3, 7))
        >>> "created_date: 2025 MARCH 07" in content
        True
    """
    frontmatter = application_frontmatter(application, EVALUATION_CHECKLIST_DOCUMENT_TYPE, today)

    yaml_content = yaml.dump(
        frontmatter, default_flow_style=False, allow_unicode=True, sort_keys=False
    )

    rows = [
        "| # | Requirement | Check | Status | Details |",
        "|---|-------------|-------|--------|---------|",
    ]
    for index, spec in enumerate(DOCUMENT_CATALOG, start=1):
        document = find_document(documents, spec.key)
        label = f"{spec.label} (required)" if spec.required else spec.label
        check = CHECK_MARK if document else ""
        status = ATTACHED if document else ""
        details = _details(spec.key, document.meta) if document else ""
        rows.append(f"| {index} | {label} | {check} | {status} | {details} |")

    markdown_parts = [
        "---",
        yaml_content.rstrip(),
        "---",
        "",
        "## Evaluation Requirements Checklist",
        "",
        *rows,
        "",
        "## Evaluator",
        "",
        application.evaluator or "",
        "",
    ]

    return "\n".join(markdown_parts)
