#!/usr/bin/env python3
"""
MCP Server entry point for the BalikBayani Direct Hire checklist tools.

This server exposes the Direct Hire evaluation workflow to staff-facing
agents: creating applications, tracking document requirements, progressing
the status checklist and generating the evaluation requirements checklist,
the confirmation document and the For Interview documents.

Usage:
    python server.py

The server runs in stdio mode by default, which is the standard transport
for MCP servers that are invoked by LLM agents.
"""

import logging
from mcp.server.fastmcp import FastMCP
from tools.create_direct_hire_application import create_direct_hire_application
from tools.load_document_requirements import load_document_requirements
from tools.upload_document import upload_document
from tools.update_status_checklist import update_status_checklist
from tools.generate_evaluation_checklist import generate_evaluation_checklist
from tools.generate_confirmation_document import generate_confirmation_document
from tools.generate_interview_documents import generate_interview_documents
from config import get_config

# Create FastMCP server instance
config = get_config()
mcp = FastMCP(
    name=config.server_name,
    instructions=(
        "This server provides tools for the BalikBayani Direct Hire evaluation workflow."
        "\n\n"
        "STATUS CHECKLIST RULES:\n"
        "Each application carries five milestones: evaluated, for_confirmation, emailed_to_dhad, "
        "received_from_dhad, for_interview. A saved milestone can never be unchecked. "
        "Only one new milestone may be checked per save. "
        "Checking 'evaluated' for the first time requires all four required documents "
        "(passport, work_visa, employment_contract, tesda_license) to be attached."
        "\n\n"
        "TOOLS:\n"
        "Use create_direct_hire_application to register a new applicant. "
        "Use load_document_requirements to see which documents are attached. "
        "Use upload_document to attach a JPEG, PNG or PDF (max 5 MB) to a requirement. "
        "Use update_status_checklist to check milestones; new milestones need confirm=true. "
        "Use generate_evaluation_checklist to produce the evaluation requirements checklist. "
        "Use generate_confirmation_document once for_confirmation is saved to record the "
        "verifier and attach the confirmation document. "
        "Use generate_interview_documents to attach the OEC memorandum and screenshots and "
        "mark for_interview."
    ),
)


@mcp.tool(
    name="create_direct_hire_application",
    description=(
        "Create a Direct Hire application. Names and places are upper-cased, the salary is "
        "converted to USD and a DHPSW-ROIVA control number is assigned."
    ),
)
def create_direct_hire_application_tool(
    name: str,
    sex: str,
    salary: float,
    jobsite: str,
    position: str,
    salary_currency: str | None = None,
    job_type: str | None = None,
    evaluator: str | None = None,
    employer: str | None = None,
    refresh_rates: bool = False,
    db_path: str | None = None,
) -> dict:
    """
    Create a Direct Hire application with an all-unchecked status checklist.

    Args:
        name: Applicant full name
        sex: 'male' or 'female'
        salary: Monthly salary in salary_currency
        jobsite: Country or city of the jobsite
        position: Job position
        salary_currency: ISO 4217 code of the salary (default USD)
        job_type: Optional job type, e.g. 'household' or 'professional'
        evaluator: Optional evaluator name
        employer: Optional employer name
        refresh_rates: Reload live currency rates before converting the salary
        db_path: Optional database path override (local backend)

    Returns:
        {"application": {...}, "notifications": [...]} or {"error": {...}}
    """
    args = {"name": name, "sex": sex, "salary": salary, "jobsite": jobsite, "position": position}

    if salary_currency is not None:
        args["salary_currency"] = salary_currency
    if job_type is not None:
        args["job_type"] = job_type
    if evaluator is not None:
        args["evaluator"] = evaluator
    if employer is not None:
        args["employer"] = employer
    if refresh_rates:
        args["refresh_rates"] = True
    if db_path is not None:
        args["db_path"] = db_path

    return create_direct_hire_application(args)


@mcp.tool(
    name="load_document_requirements",
    description=(
        "List the 12 document requirements (4 required, 8 optional) of a Direct Hire application "
        "with their attachment state and completion counts."
    ),
)
def load_document_requirements_tool(
    application_id: str,
    db_path: str | None = None,
) -> dict:
    """
    Load the document requirement tracker for an application.

    Args:
        application_id: Application identifier
        db_path: Optional database path override (local backend)

    Returns:
        {
            "application_id": str,
            "loaded": bool,                 # False if the documents store was unavailable
            "requirements": [{key, label, required, checked, file_name, file_id, meta}],
            "required_completed": int,
            "required_total": 4,
            "optional_completed": int,
            "optional_total": 8,
            "is_complete": bool,
            "notifications": [...]
        }
    """
    args = {"application_id": application_id}
    if db_path is not None:
        args["db_path"] = db_path
    return load_document_requirements(args)


@mcp.tool(
    name="upload_document",
    description=(
        "Attach a JPEG, PNG or PDF file (max 5 MB) to a document requirement. Passport, work_visa "
        "and employment_contract accept structured metadata."
    ),
)
def upload_document_tool(
    application_id: str,
    document_key: str,
    file_path: str,
    content_type: str | None = None,
    meta: dict[str, str] | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Upload a supporting document.

    Args:
        application_id: Application identifier
        document_key: Requirement key, e.g. 'passport', 'work_visa', 'tesda_license'
        file_path: Path of the file to upload
        content_type: Optional MIME type (guessed from the extension)
        meta: Optional metadata: passport_number, passport_expiry (passport);
            visa_category, visa_type, visa_validity (work_visa);
            ec_verified_polo_check, ec_issued_date (employment_contract)
        db_path: Optional database path override (local backend)

    Returns:
        {
            "application_id": str,
            "document_key": str,
            "success": bool,
            "file_id": str,                 # when attached
            "file_name": str,
            "required_completed": int,
            "required_total": 4,
            "error": str,                   # when rejected
            "notifications": [...]
        }
    """
    args = {"application_id": application_id, "document_key": document_key, "file_path": file_path}

    if content_type is not None:
        args["content_type"] = content_type
    if meta is not None:
        args["meta"] = meta
    if db_path is not None:
        args["db_path"] = db_path

    return upload_document(args)


@mcp.tool(
    name="update_status_checklist",
    description=(
        "Check or uncheck status checklist milestones of a Direct Hire application. Saved "
        "milestones cannot be unchecked; newly checked milestones require confirm=true."
    ),
)
def update_status_checklist_tool(
    application_id: str,
    changes: list[dict],
    confirm: bool | None = None,
    dry_run: bool | None = None,
    generate_document: bool | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Update the status checklist.

    Args:
        application_id: Application identifier
        changes: [{"milestone": "evaluated", "checked": true}, ...]
        confirm: Acknowledge that newly checked milestones cannot be undone
        dry_run: Preview the resulting checklist without saving
        generate_document: Generate the evaluation checklist after saving
        db_path: Optional database path override (local backend)

    Returns:
        {
            "application_id": str,
            "outcome": str,                 # saved | confirmation_required | failed | blocked | noop | would_save
            "success": bool,
            "dry_run": bool,
            "current_status": str,
            "persisted": {...},
            "draft": {...},
            "pending_milestones": [str],
            "changes": [{milestone, checked, action, allowed, error?}],
            "document_counts": {...},
            "generation": str,              # when generate_document ran
            "error": str,                   # when blocked or failed
            "notifications": [...]
        }
    """
    args = {"application_id": application_id, "changes": changes}

    if confirm is not None:
        args["confirm"] = confirm
    if dry_run is not None:
        args["dry_run"] = dry_run
    if generate_document is not None:
        args["generate_document"] = generate_document
    if db_path is not None:
        args["db_path"] = db_path

    return update_status_checklist(args)


@mcp.tool(
    name="generate_evaluation_checklist",
    description=(
        "Generate the evaluation requirements checklist document once all required documents "
        "are attached. An existing checklist is replaced unless override=false."
    ),
)
def generate_evaluation_checklist_tool(
    application_id: str,
    override: bool | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Generate the evaluation requirements checklist.

    Args:
        application_id: Application identifier
        override: Replace an existing checklist (default true); false keeps it
        db_path: Optional database path override (local backend)

    Returns:
        {
            "application_id": str,
            "outcome": str,                 # generated | overridden | kept | skipped | failed
            "success": bool,
            "document_counts": {...},
            "error": str,
            "notifications": [...]
        }
    """
    args = {"application_id": application_id}

    if override is not None:
        args["override"] = override
    if db_path is not None:
        args["db_path"] = db_path

    return generate_evaluation_checklist(args)


@mcp.tool(
    name="generate_confirmation_document",
    description=(
        "Generate the MWO/POLO/PE/PCG confirmation document and record who verified the "
        "employment contract. A verification screenshot is required unless one is stored; "
        "an existing document is replaced unless override=false."
    ),
)
def generate_confirmation_document_tool(
    application_id: str,
    verifier_type: str | None = None,
    verifier_office: str | None = None,
    pe_pcg_city: str | None = None,
    others_text: str | None = None,
    verified_date: str | None = None,
    image_path: str | None = None,
    image_content_type: str | None = None,
    mark_confirmed: bool | None = None,
    override: bool | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Complete the For Confirmation step.

    Args:
        application_id: Application identifier
        verifier_type: 'MWO', 'PEPCG' or 'OTHERS' (falls back to the stored details)
        verifier_office: MWO office, required for MWO
        pe_pcg_city: Embassy or consulate city, required for PEPCG
        others_text: Verifier description, required for OTHERS
        verified_date: Optional ISO date of verification (default today)
        image_path: Verification screenshot (JPEG, PNG or PDF)
        image_content_type: Optional MIME type of the screenshot
        mark_confirmed: Record the step as confirmed (default true)
        override: Replace an existing confirmation document (default true)
        db_path: Optional database path override (local backend)

    Returns:
        {
            "application_id": str,
            "outcome": str,                 # generated | overridden | kept | skipped | failed
            "success": bool,
            "current_status": str,
            "persisted": {...},
            "documents": [{id, document_type, file_name}],
            "error": str,
            "notifications": [...]
        }
    """
    args = {"application_id": application_id}
    optional = {
        "verifier_type": verifier_type,
        "verifier_office": verifier_office,
        "pe_pcg_city": pe_pcg_city,
        "others_text": others_text,
        "verified_date": verified_date,
        "image_path": image_path,
        "image_content_type": image_content_type,
        "mark_confirmed": mark_confirmed,
        "override": override,
        "db_path": db_path,
    }
    args.update({key: value for key, value in optional.items() if value is not None})

    return generate_confirmation_document(args)


@mcp.tool(
    name="generate_interview_documents",
    description=(
        "Generate the OEC memorandum and attachments screenshots documents and mark "
        "for_interview. A screenshot is required unless one is stored; existing documents "
        "are replaced unless override=false."
    ),
)
def generate_interview_documents_tool(
    application_id: str,
    processed_workers_principal: int | None = None,
    processed_workers_las: int | None = None,
    screenshot_path: str | None = None,
    screenshot_content_type: str | None = None,
    mark_status: bool | None = None,
    override: bool | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Complete the For Interview step.

    Args:
        application_id: Application identifier
        processed_workers_principal: Workers processed for the principal
        processed_workers_las: Workers processed through the Landbased Accreditation System
        screenshot_path: Screenshot to attach (JPEG, PNG or PDF)
        screenshot_content_type: Optional MIME type of the screenshot
        mark_status: Save for_interview as checked (default true); false only regenerates
        override: Replace existing documents (default true)
        db_path: Optional database path override (local backend)

    Returns:
        Same shape as generate_confirmation_document
    """
    args = {"application_id": application_id}
    optional = {
        "processed_workers_principal": processed_workers_principal,
        "processed_workers_las": processed_workers_las,
        "screenshot_path": screenshot_path,
        "screenshot_content_type": screenshot_content_type,
        "mark_status": mark_status,
        "override": override,
        "db_path": db_path,
    }
    args.update({key: value for key, value in optional.items() if value is not None})

    return generate_interview_documents(args)


def main():
    """
    Main entry point for the MCP server.

    Runs the server in stdio mode, which is the standard transport
    for MCP servers that are invoked by LLM agents.
    """
    config.setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Starting BalikBayani checklist MCP Server")
    logger.info(f"Server name: {config.server_name}")

    warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)

    logger.info("Server starting in stdio mode")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
