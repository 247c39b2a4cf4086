"""
MCP tool handler for generate_interview_documents.

Completes the For Interview step: uploads the screenshot, generates the OEC
memorandum and the attachments screenshots document, then saves
``for_interview`` with the processed-worker counts.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.document import StagedFile
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.step_documents import GenerateInterviewDocumentsRequest, StepDocumentsResponse
from utils.checklist_coordinator import ChecklistCoordinator, GenerateOutcome
from utils.pydantic_error_mapper import map_pydantic_validation_error


def _build_response(
    coordinator: ChecklistCoordinator, outcome: GenerateOutcome, notifier: RecordingNotifier
) -> Dict[str, Any]:
    failed = outcome in (GenerateOutcome.SKIPPED, GenerateOutcome.FAILED)
    return StepDocumentsResponse(
        application_id=coordinator.application_id,
        outcome=outcome.value,
        success=not failed,
        current_status=coordinator.current_status_label,
        persisted=coordinator.persisted.to_payload(),
        documents=[
            {"id": d.id, "document_type": d.document_type, "file_name": d.file_name}
            for d in coordinator.generated
        ],
        error=coordinator.last_error.message if failed and coordinator.last_error else None,
        notifications=notifications_payload(notifier),
    ).model_dump(exclude_none=True)


def generate_interview_documents(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate the For Interview documents for an application.

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - processed_workers_principal (int): Workers processed for the principal
            - processed_workers_las (int): Workers processed through the
              Landbased Accreditation System
            - screenshot_path (str): Screenshot to attach; required when
              marking the status unless one is already stored
            - screenshot_content_type (str, optional): MIME type of the screenshot
            - mark_status (bool, optional): Save ``for_interview`` as checked
              (default: True); False only regenerates from stored counts
            - override (bool, optional): Replace existing documents
              (default: True); False keeps them
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with ``outcome``, the stored checklist, the generated
        documents and ``notifications``; or ``{"error": {...}}``
    """
    gateway = None
    try:
        request = GenerateInterviewDocumentsRequest.model_validate(args)
        screenshot: Optional[StagedFile] = None
        if request.screenshot_path is not None:
            screenshot = StagedFile.from_path(request.screenshot_path, request.screenshot_content_type)
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        coordinator = ChecklistCoordinator.for_application(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        outcome = coordinator.complete_for_interview(
            request.details(),
            screenshot=screenshot,
            mark_status=request.mark_status,
            confirm_override=request.override,
        )

        return _build_response(coordinator, outcome, notifier)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except PortalError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()

    finally:
        if gateway is not None:
            gateway.close()
