"""
MCP tool handler for upload_document.

Reads a file from disk, validates it against the upload constraints and
attaches it to one document requirement of an application.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.document import StagedFile
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.upload_document import UploadDocumentRequest, UploadDocumentResponse
from utils.document_tracker import DocumentRequirementTracker
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import validate_document_key, validate_document_meta


def _build_response(
    tracker: DocumentRequirementTracker,
    document_key: str,
    success: bool,
    notifier: RecordingNotifier,
    error_message: Optional[str] = None,
) -> Dict[str, Any]:
    entry = tracker.get(document_key)
    required_completed, required_total = tracker.completion()
    return UploadDocumentResponse(
        application_id=tracker.application_id,
        document_key=document_key,
        success=success,
        file_id=entry.file_id,
        file_name=entry.file_name,
        required_completed=required_completed,
        required_total=required_total,
        error=error_message,
        notifications=notifications_payload(notifier),
    ).model_dump(exclude_none=True)


def upload_document(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upload a supporting document for a Direct Hire application.

    Rejected files (format, size) and failed uploads are reported as a
    blocked response with ``success: false``; the requirement stays as it was.

    Args:
        args: Dictionary containing parameters:
            - application_id (str | int): Application identifier
            - document_key (str): Catalog key, e.g. ``passport``
            - file_path (str): Path of the file to upload
            - content_type (str, optional): MIME type (guessed from the name)
            - meta (dict, optional): Structured metadata for passport, visa or
              contract documents
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with ``success``, ``file_id``, ``file_name``, required
        completion counts and ``notifications``; or ``{"error": {...}}`` for
        invalid input (unknown key, unreadable file, bad metadata)
    """
    gateway = None
    try:
        request = UploadDocumentRequest.model_validate(args)
        document_key = validate_document_key(request.document_key)
        meta = validate_document_meta(document_key, request.meta)
        staged = StagedFile.from_path(request.file_path, request.content_type)
        cfg = get_config()

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        tracker = DocumentRequirementTracker(
            request.application_id,
            gateway,
            notifier,
            max_upload_bytes=cfg.max_upload_bytes,
        )
        tracker.load_existing()

        if tracker.select_file(document_key, staged) and tracker.confirm_upload(
            document_key, meta=meta
        ):
            return _build_response(tracker, document_key, True, notifier)

        return _build_response(
            tracker,
            document_key,
            False,
            notifier,
            error_message=tracker.last_error.message if tracker.last_error else None,
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
