"""
MCP tool handler for load_document_requirements.

Rebuilds the document requirement tracker for an application and returns
each catalog entry with its attachment state and the completion counts.
"""

from typing import Any, Dict

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.direct_hire import (
    LoadDocumentRequirementsRequest,
    LoadDocumentRequirementsResponse,
)
from utils.document_tracker import DocumentRequirementTracker
from utils.pydantic_error_mapper import map_pydantic_validation_error


def load_document_requirements(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Load document requirements for a Direct Hire application.

    A documents store failure is not an error: the tracker falls back to the
    empty catalog and ``loaded`` is False.

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with requirements, completion counts, ``is_complete``,
        ``loaded`` and ``notifications``, or ``{"error": {...}}``
    """
    gateway = None
    try:
        request = LoadDocumentRequirementsRequest.model_validate(args)
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        tracker = DocumentRequirementTracker(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        loaded = tracker.load_existing()

        return LoadDocumentRequirementsResponse(
            loaded=loaded,
            notifications=notifications_payload(notifier),
            **tracker.to_dict(),
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except PortalError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()

    finally:
        if gateway is not None:
            gateway.close()
