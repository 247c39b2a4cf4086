"""
MCP tool handler for generate_confirmation_document.

Completes the For Confirmation step: uploads the verification screenshot,
generates the MWO/POLO/PE/PCG confirmation document and records who verified
the employment contract on the status checklist.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.document import StagedFile
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.step_documents import GenerateConfirmationDocumentRequest, StepDocumentsResponse
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


def generate_confirmation_document(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate the confirmation document for an application.

    Verifier fields not given are taken from the stored
    ``for_confirmation_meta``, so a second call can regenerate the document
    from the application id alone.

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - verifier_type (str): MWO, PEPCG or OTHERS
            - verifier_office (str): MWO office (MWO only)
            - pe_pcg_city (str): Embassy or consulate city (PEPCG only)
            - others_text (str): Verifier description (OTHERS only)
            - verified_date (str, optional): ISO date, defaults to today
            - image_path (str): Verification screenshot; required unless one
              is already stored
            - image_content_type (str, optional): MIME type of the screenshot
            - mark_confirmed (bool, optional): Record
              ``for_confirmation_confirmed`` (default: True)
            - override (bool, optional): Replace an existing confirmation
              document (default: True); False keeps it
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with ``outcome``, the stored checklist, the generated
        document and ``notifications``; or ``{"error": {...}}``
    """
    gateway = None
    try:
        request = GenerateConfirmationDocumentRequest.model_validate(args)
        image: Optional[StagedFile] = None
        if request.image_path is not None:
            image = StagedFile.from_path(request.image_path, request.image_content_type)
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        coordinator = ChecklistCoordinator.for_application(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        outcome = coordinator.confirm_for_confirmation(
            request.details(),
            image=image,
            mark_confirmed=request.mark_confirmed,
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
