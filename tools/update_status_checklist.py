"""
MCP tool handler for update_status_checklist.

Applies requested milestone changes to a Direct Hire status checklist through
the checklist coordinator: transition policy, the document gate on
``evaluated``, the irreversible-action confirmation and the save.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.update_status_checklist import (
    UpdateStatusChecklistRequest,
    UpdateStatusChecklistResponse,
)
from utils.checklist_coordinator import ChecklistCoordinator, SaveOutcome
from utils.checklist_policy import ToggleAction
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import validate_milestone

# Outcomes beyond SaveOutcome reported by this tool
OUTCOME_BLOCKED = "blocked"
OUTCOME_NOOP = "noop"
OUTCOME_WOULD_SAVE = "would_save"


def _build_response(
    coordinator: ChecklistCoordinator,
    notifier: RecordingNotifier,
    outcome: str,
    dry_run: bool,
    changes: List[Dict[str, Any]],
    generation: Optional[str] = None,
    error_message: Optional[str] = None,
) -> Dict[str, Any]:
    """Build structured response payload from coordinator state."""
    success = outcome not in (OUTCOME_BLOCKED, SaveOutcome.FAILED.value)
    state = coordinator.to_dict()
    return UpdateStatusChecklistResponse(
        application_id=coordinator.application_id,
        outcome=outcome,
        success=success,
        dry_run=dry_run,
        current_status=state["current_status"],
        persisted=state["persisted"],
        draft=state["draft"],
        pending_milestones=state["pending_milestones"],
        changes=changes,
        document_counts=state["document_counts"],
        generation=generation,
        error=error_message,
        notifications=notifications_payload(notifier),
    ).model_dump(exclude_none=True)


def update_status_checklist(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Update the status checklist of a Direct Hire application.

    Flow:
    1. Validate input and load the stored checklist (persisted snapshot)
    2. Apply each change to the draft with the transition policy
       - unchecking a saved milestone blocks the whole request
       - first check of ``evaluated`` requires all required documents
    3. dry_run: report the predicted draft without writing
    4. Newly checked milestones need ``confirm: true`` (irreversible)
    5. Save; optionally generate the evaluation requirements checklist

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - changes (list): ``[{"milestone": str, "checked": bool}, ...]``
            - confirm (bool, optional): Acknowledge the irreversible-action
              warning (default: False)
            - dry_run (bool, optional): Preview without writing (default: False)
            - generate_document (bool, optional): Generate the evaluation
              checklist after a successful save (default: False)
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with ``outcome`` (saved, confirmation_required, failed,
        blocked, noop, would_save), the persisted and draft checklists,
        per-change results, document counts and ``notifications``; or
        ``{"error": {...}}`` for invalid input or unknown applications
    """
    gateway = None
    try:
        request = UpdateStatusChecklistRequest.model_validate(args)
        requested = [(validate_milestone(c.milestone), c.checked) for c in request.changes]
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        coordinator = ChecklistCoordinator.for_application(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        coordinator.open()

        changes: List[Dict[str, Any]] = []
        for milestone, checked in requested:
            result = coordinator.toggle_milestone(milestone, checked)
            change = {
                "milestone": milestone.value,
                "checked": checked,
                "action": result.action.value,
                "allowed": result.allowed,
            }

            if result.action == ToggleAction.REJECTED:
                change["error"] = result.error_message
                changes.append(change)
                return _build_response(
                    coordinator,
                    notifier,
                    OUTCOME_BLOCKED,
                    request.dry_run,
                    changes,
                    error_message=result.error_message,
                )

            if result.action == ToggleAction.REQUIRES_DOCUMENTS:
                if not coordinator.complete_document_requirements():
                    message = coordinator.last_error.message if coordinator.last_error else None
                    change["allowed"] = False
                    change["error"] = message
                    changes.append(change)
                    return _build_response(
                        coordinator,
                        notifier,
                        OUTCOME_BLOCKED,
                        request.dry_run,
                        changes,
                        error_message=message,
                    )
            changes.append(change)

        if not coordinator.has_pending_changes:
            return _build_response(coordinator, notifier, OUTCOME_NOOP, request.dry_run, changes)

        if request.dry_run:
            return _build_response(
                coordinator, notifier, OUTCOME_WOULD_SAVE, True, changes
            )

        if coordinator.pending_milestones and not request.confirm:
            outcome = coordinator.request_save()
        else:
            outcome = coordinator.confirm_save()

        generation = None
        if outcome == SaveOutcome.SAVED and request.generate_document:
            generation = coordinator.generate_checklist_document().value

        error_message = None
        if outcome == SaveOutcome.FAILED and coordinator.last_error:
            error_message = coordinator.last_error.message

        return _build_response(
            coordinator,
            notifier,
            outcome.value,
            False,
            changes,
            generation=generation,
            error_message=error_message,
        )

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except PortalError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()

    finally:
        if gateway is not None:
            gateway.close()
