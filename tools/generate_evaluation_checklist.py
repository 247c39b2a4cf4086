"""
MCP tool handler for generate_evaluation_checklist.

Generates the evaluation requirements checklist document once every required
document is attached, replacing an existing one only when asked to.
"""

from typing import Any, Dict

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.update_status_checklist import (
    GenerateEvaluationChecklistRequest,
    GenerateEvaluationChecklistResponse,
)
from utils.checklist_coordinator import ChecklistCoordinator, GenerateOutcome
from utils.pydantic_error_mapper import map_pydantic_validation_error


def generate_evaluation_checklist(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate the evaluation requirements checklist for an application.

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - override (bool, optional): Replace an existing checklist
              (default: True); False keeps it
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with ``outcome`` (generated, overridden, kept, skipped,
        failed), document counts and ``notifications``; or
        ``{"error": {...}}``
    """
    gateway = None
    try:
        request = GenerateEvaluationChecklistRequest.model_validate(args)
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        coordinator = ChecklistCoordinator.for_application(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        counts = coordinator.open()
        outcome = coordinator.generate_checklist_document(confirm_override=request.override)

        error_message = None
        if outcome in (GenerateOutcome.SKIPPED, GenerateOutcome.FAILED) and coordinator.last_error:
            error_message = coordinator.last_error.message

        return GenerateEvaluationChecklistResponse(
            application_id=coordinator.application_id,
            outcome=outcome.value,
            success=outcome not in (GenerateOutcome.SKIPPED, GenerateOutcome.FAILED),
            document_counts=counts._asdict(),
            error=error_message,
            notifications=notifications_payload(notifier),
        ).model_dump(exclude_none=True)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except PortalError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()

    finally:
        if gateway is not None:
            gateway.close()
