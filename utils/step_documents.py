"""
Renderers for the documents generated at the For Confirmation and For
Interview steps.

Same format as the evaluation checklist: markdown with the shared applicant
frontmatter plus the step details.
"""

from datetime import date
from typing import List, Optional

import yaml

from models.application import DirectHireApplication
from models.document import (
    ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE,
    CONFIRMATION_DOCUMENT_TYPE,
    INTERVIEW_SCREENSHOT_DOCUMENT_TYPE,
    OEC_MEMORANDUM_DOCUMENT_TYPE,
    VERIFICATION_IMAGE_DOCUMENT_TYPE,
    StoredDocument,
)
from models.step_details import ConfirmationDetails, InterviewDetails, VerifierType
from utils.evaluation_renderer import application_frontmatter, format_long_date


def confirmation_file_name(control_number: str) -> str:
    """
    Examples:
        >>> confirmation_file_name("DHPSW-ROIVA-2025-0307-004-058")
        'DH-DHPSW-ROIVA-2025-0307-004-058-MWO-POLO-PE-PCG Confirmation.md'
    """
    return f"DH-{control_number}-MWO-POLO-PE-PCG Confirmation.md"


def oec_memorandum_file_name(control_number: str) -> str:
    return f"DH-{control_number}-Memorandum Issuance of OEC.md"


def attachments_file_name(control_number: str) -> str:
    return f"DH-{control_number}-attachments-screenshots.md"


def _render(frontmatter: dict, body: List[str]) -> str:
    yaml_content = yaml.dump(
        frontmatter, default_flow_style=False, allow_unicode=True, sort_keys=False
    )
    return "\n".join(["---", yaml_content.rstrip(), "---", "", *body, ""])


def render_confirmation_document(
    application: DirectHireApplication,
    details: ConfirmationDetails,
    today: Optional[date] = None,
) -> str:
    """
    Render the MWO/POLO/PE/PCG confirmation of the employment contract.

    The verified date defaults to ``today``. Office, city and free text are
    only printed for the verifier type they belong to.
    """
    verified = details.verified_date or (today or date.today()).isoformat()
    office = details.verifier_office if details.verifier_type == VerifierType.MWO else ""
    city = details.pe_pcg_city if details.verifier_type == VerifierType.PEPCG else ""
    others = details.others_text if details.verifier_type == VerifierType.OTHERS else ""

    frontmatter = application_frontmatter(application, CONFIRMATION_DOCUMENT_TYPE, today)
    frontmatter.update(
        {
            "verifier_type": details.verifier_label,
            "verified_date": format_long_date(verified),
            "mwo_office": office or "",
            "pe_pcg_city": city or "",
            "others_text": others or "",
            "verification_image": details.verification_image_name or "",
        }
    )

    where = office or city or others or ""
    body = [
        "## Confirmation of Employment Contract",
        "",
        f"The employment contract of {application.name} with "
        f"{application.employer or 'the employer'} ({application.position or 'position not set'}, "
        f"{application.jobsite or 'jobsite not set'}) was verified by the "
        f"{details.verifier_label}" + (f", {where}" if where else "") + f" on {format_long_date(verified)}.",
        "",
        "## Verification Screenshot",
        "",
        details.verification_image_name or "None attached",
    ]
    return _render(frontmatter, body)


def render_oec_memorandum(
    application: DirectHireApplication,
    details: InterviewDetails,
    today: Optional[date] = None,
) -> str:
    """Render the memorandum requesting issuance of the OEC."""
    frontmatter = application_frontmatter(application, OEC_MEMORANDUM_DOCUMENT_TYPE, today)
    frontmatter.update(
        {
            "processed_workers_principal": details.processed_workers_principal,
            "processed_workers_las": details.processed_workers_las,
        }
    )
    body = [
        "## Memorandum: Issuance of OEC",
        "",
        f"Request for issuance of the Overseas Employment Certificate of {application.name}, "
        f"{application.position or ''} for {application.employer or ''} in {application.jobsite or ''}.",
        "",
        "| Processed workers | Count |",
        "|-------------------|-------|",
        f"| Principal | {details.processed_workers_principal} |",
        f"| Landbased Accreditation System | {details.processed_workers_las} |",
    ]
    return _render(frontmatter, body)


def render_attachments_screenshots(
    application: DirectHireApplication,
    screenshots: List[StoredDocument],
    today: Optional[date] = None,
) -> str:
    """
    List the For Interview and confirmation screenshots attached to the application.

    Interview screenshots come first, then verification images, each in the
    given (newest first) order.
    """
    ordered = [d for d in screenshots if d.document_type == INTERVIEW_SCREENSHOT_DOCUMENT_TYPE]
    ordered += [d for d in screenshots if d.document_type == VERIFICATION_IMAGE_DOCUMENT_TYPE]

    frontmatter = application_frontmatter(application, ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE, today)
    frontmatter["screenshot_count"] = len(ordered)

    rows = ["| # | Screenshot | Source |", "|---|------------|--------|"]
    for index, document in enumerate(ordered, start=1):
        source = (
            "For Interview"
            if document.document_type == INTERVIEW_SCREENSHOT_DOCUMENT_TYPE
            else "Confirmation"
        )
        rows.append(f"| {index} | {document.file_name} | {source} |")

    return _render(frontmatter, ["## Attachments: Screenshots", "", *rows])
