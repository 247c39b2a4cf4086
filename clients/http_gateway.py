"""
HTTP portal gateway.

Talks to the BalikBayani portal REST API with httpx. Every endpoint answers
with the envelope ``{"success": bool, "data": ..., "error": str}``; failures
are mapped onto ``PortalError`` codes by HTTP status.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from models.application import DirectHireApplication
from models.checklist import StatusChecklist
from models.document import (
    ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE,
    OEC_MEMORANDUM_DOCUMENT_TYPE,
    StagedFile,
    StoredDocument,
)
from models.errors import (
    create_conflict_error,
    create_network_error,
    create_not_found_error,
    create_upstream_error,
    create_validation_error,
)
from models.step_details import ConfirmationDetails, InterviewDetails
from utils.validation import validate_application_id

logger = logging.getLogger(__name__)

# 409 payload keys naming the documents that already exist
CONFLICT_ID_FIELDS = {
    "existingId": "existing_id",
    "existingOecId": "existing_oec_id",
    "existingAttachId": "existing_attach_id",
}


class HttpPortalGateway:
    """PortalGateway over the portal REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            base_url: Portal root, e.g. ``http://localhost:3000``
            timeout: Per-request timeout in seconds (None waits indefinitely)
            client: Preconfigured client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _request(
        self, method: str, path: str, resource: str, identifier: str = "", **kwargs
    ) -> Any:
        """
        Send a request and unwrap the response envelope.

        Returns:
            The ``data`` member of a successful response

        Raises:
            PortalError: NETWORK_ERROR on transport failure, otherwise a code
                derived from the HTTP status
        """
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise create_network_error(f"{method} {path} timed out", original_error=e) from e
        except httpx.HTTPError as e:
            raise create_network_error(f"{method} {path} failed: {e}", original_error=e) from e

        try:
            body = response.json()
        except ValueError:
            body = None
        envelope = body if isinstance(body, dict) else {}

        if response.is_success and envelope.get("success", True) is not False:
            return envelope.get("data")

        message = envelope.get("error") or envelope.get("message") or response.reason_phrase
        status = response.status_code
        logger.warning(f"{method} {path} -> {status}: {message}")

        if status == 400:
            raise create_validation_error(str(message))
        if status == 404:
            raise create_not_found_error(resource, identifier or path)
        if status == 409:
            data = envelope.get("data")
            ids = {
                name: str(data[key])
                for key, name in CONFLICT_ID_FIELDS.items()
                if isinstance(data, dict) and data.get(key) is not None
            }
            raise create_conflict_error(str(message), **ids)
        raise create_upstream_error(str(message), status_code=status)

    def get_application(self, application_id: str) -> DirectHireApplication:
        application_id = validate_application_id(application_id)
        data = self._request(
            "GET",
            f"/api/direct-hire/{application_id}",
            "Direct hire application",
            application_id,
        )
        return DirectHireApplication.model_validate(data)

    def create_direct_hire_application(
        self, payload: Mapping[str, Any]
    ) -> DirectHireApplication:
        data = self._request(
            "POST", "/api/direct-hire", "Direct hire application", json=dict(payload)
        )
        return DirectHireApplication.model_validate(data)

    def list_documents(
        self, application_id: str, application_type: str
    ) -> List[StoredDocument]:
        application_id = validate_application_id(application_id)
        data = self._request(
            "GET",
            "/api/documents",
            "Documents",
            params={"applicationId": application_id, "applicationType": application_type},
        )
        return [StoredDocument.model_validate(item) for item in data or []]

    def upload_document(
        self,
        application_id: str,
        application_type: str,
        document_name: str,
        file: StagedFile,
        meta: Optional[Dict[str, str]] = None,
    ) -> StoredDocument:
        application_id = validate_application_id(application_id)
        form = {
            "applicationId": application_id,
            "applicationType": application_type,
            "documentName": document_name,
        }
        if meta:
            form["meta"] = json.dumps(meta)

        data = self._request(
            "POST",
            "/api/documents/upload",
            "Application",
            application_id,
            data=form,
            files={"file": (file.file_name, file.content, file.content_type)},
        )
        if not isinstance(data, dict) or data.get("id") is None:
            raise create_upstream_error("Upload response did not include a document id")

        return StoredDocument(
            id=data["id"],
            document_type=data.get("document_type") or document_name,
            file_name=data.get("file_name") or file.file_name,
            meta=data.get("meta") or meta or {},
            application_id=application_id,
            application_type=application_type,
            mime_type=file.content_type,
            file_size=file.size,
        )

    def update_status_checklist(
        self, application_id: str, checklist: StatusChecklist
    ) -> DirectHireApplication:
        application_id = validate_application_id(application_id)
        data = self._request(
            "PATCH",
            f"/api/direct-hire/{application_id}",
            "Direct hire application",
            application_id,
            json={"status_checklist": checklist.to_payload()},
        )
        if not isinstance(data, dict):
            # Some portal builds answer with a bare success flag
            return self.get_application(application_id)
        return DirectHireApplication.model_validate(data)

    def generate_evaluation_checklist(
        self, application_id: str, override: bool = False
    ) -> StoredDocument:
        application_id = validate_application_id(application_id)
        params = {"override": "true"} if override else None
        data = self._request(
            "POST",
            f"/api/direct-hire/{application_id}/evaluation-checklist",
            "Direct hire application",
            application_id,
            params=params,
        )
        if not isinstance(data, dict):
            raise create_upstream_error("Generation response did not include a document")
        return StoredDocument.model_validate(data)

    def mark_documents_completed(self, application_id: str, completed_at: str) -> None:
        application_id = validate_application_id(application_id)
        self._request(
            "PUT",
            f"/api/direct-hire/{application_id}/documents",
            "Direct hire application",
            application_id,
            json={"documentsCompleted": True, "completedAt": completed_at},
        )

    def generate_confirmation_document(
        self, application_id: str, details: ConfirmationDetails, override: bool = False
    ) -> StoredDocument:
        application_id = validate_application_id(application_id)
        data = self._request(
            "POST",
            f"/api/direct-hire/{application_id}/confirmation",
            "Direct hire application",
            application_id,
            params={"override": "true"} if override else None,
            json=details.to_meta(),
        )
        if not isinstance(data, dict):
            raise create_upstream_error("Generation response did not include a document")
        return StoredDocument.model_validate(data)

    def generate_interview_documents(
        self, application_id: str, details: InterviewDetails, override: bool = False
    ) -> List[StoredDocument]:
        """
        Generate the OEC memorandum and the attachments screenshots document.

        The portal answers with ``{"oec": {...}, "attachments": {...}}``.
        """
        application_id = validate_application_id(application_id)
        data = self._request(
            "POST",
            f"/api/direct-hire/{application_id}/interview-docs",
            "Direct hire application",
            application_id,
            params={"override": "true"} if override else None,
            json=details.to_request(),
        )
        if not isinstance(data, dict):
            raise create_upstream_error("Generation response did not include the documents")

        documents = []
        for key, document_type in (
            ("oec", OEC_MEMORANDUM_DOCUMENT_TYPE),
            ("attachments", ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE),
        ):
            item = data.get(key)
            if isinstance(item, dict) and item.get("id") is not None:
                documents.append(
                    StoredDocument.model_validate(
                        {"document_type": document_type, "application_id": application_id, **item}
                    )
                )
        if not documents:
            raise create_upstream_error("Generation response did not include the documents")
        return documents
