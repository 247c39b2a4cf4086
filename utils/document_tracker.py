"""
Document Requirement Tracker for Direct Hire evaluation.

Tracks which catalog documents are attached to an application, validates and
uploads new attachments, and reports completion counts. The tracker is
ephemeral: it is rebuilt from the documents store every time it is opened.

Failure handling follows three rules:
- Validation problems (bad file, missing attachment) are notified and leave
  state unchanged
- Upload failures are notified and leave the entry unchecked
- Load failures are logged and fall back silently to the empty catalog
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from clients.gateway import PortalGateway
from clients.notifier import Notifier
from models.document import (
    DOCUMENT_CATALOG,
    OPTIONAL_DOCUMENT_KEYS,
    REQUIRED_DOCUMENT_KEYS,
    DocumentRequirement,
    StagedFile,
)
from models.errors import (
    PortalError,
    create_document_required_error,
    create_requirements_incomplete_error,
    create_validation_error,
)
from models.status import ApplicationType
from utils.file_validation import DEFAULT_MAX_UPLOAD_BYTES, validate_upload_file
from utils.validation import validate_document_key

logger = logging.getLogger(__name__)

REQUIRED_TOTAL = len(REQUIRED_DOCUMENT_KEYS)
OPTIONAL_TOTAL = len(OPTIONAL_DOCUMENT_KEYS)


class DocumentRequirementTracker:
    """
    Per-application view of the document requirement catalog.

    Every mutating method returns True when it changed state and False when it
    was refused; the reason is both notified and kept in ``last_error``.
    """

    def __init__(
        self,
        application_id: str,
        gateway: PortalGateway,
        notifier: Notifier,
        application_type: str = ApplicationType.DIRECT_HIRE.value,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.application_id = application_id
        self.application_type = application_type
        self.max_upload_bytes = max_upload_bytes
        self._gateway = gateway
        self._notifier = notifier
        self.last_error: Optional[PortalError] = None
        self._entries: Dict[str, DocumentRequirement] = {}
        self._staged: Dict[str, StagedFile] = {}
        self._reset()

    def _reset(self) -> None:
        self._entries = {spec.key: DocumentRequirement.from_spec(spec) for spec in DOCUMENT_CATALOG}
        self._staged = {}

    @property
    def requirements(self) -> List[DocumentRequirement]:
        """Entries in catalog order."""
        return list(self._entries.values())

    def get(self, key: str) -> DocumentRequirement:
        return self._entries[validate_document_key(key)]

    def staged(self, key: str) -> Optional[StagedFile]:
        """File selected for ``key`` and not yet uploaded."""
        return self._staged.get(validate_document_key(key))

    def _refuse(self, error: PortalError, title: str, description: str) -> bool:
        self.last_error = error
        self._notifier.notify(title, description, destructive=True)
        return False

    def load_existing(self) -> bool:
        """
        Rebuild entries from the documents already stored for the application.

        Returns:
            True if the documents store answered, False if the tracker fell
            back to the empty catalog
        """
        self._reset()
        self.last_error = None
        try:
            documents = self._gateway.list_documents(self.application_id, self.application_type)
        except PortalError as e:
            logger.warning(
                f"Could not load documents for application {self.application_id}: {e.message}"
            )
            return False

        by_type = {}
        for document in documents:
            # First match wins when a type was uploaded more than once
            by_type.setdefault(document.document_type, document)

        for key, entry in self._entries.items():
            document = by_type.get(key)
            if document is None:
                continue
            entry.checked = True
            entry.file_name = document.file_name
            entry.file_id = document.id
            entry.meta = dict(document.meta)

        logger.debug(
            f"Loaded {len(documents)} documents for application {self.application_id}; "
            f"required {self.completion()[0]}/{REQUIRED_TOTAL}"
        )
        return True

    def select_file(self, key: str, file: Optional[StagedFile]) -> bool:
        """Validate a file and stage it for ``confirm_upload``."""
        key = validate_document_key(key)
        issue = validate_upload_file(file, self.max_upload_bytes)
        if issue is not None:
            return self._refuse(create_validation_error(issue.description), issue.title, issue.description)

        # Staging is not an attachment; only a stored upload counts
        self._staged[key] = file
        self.last_error = None
        return True

    def confirm_upload(
        self,
        key: str,
        file: Optional[StagedFile] = None,
        meta: Optional[Dict[str, str]] = None,
    ) -> bool:
        """
        Upload the staged (or given) file for ``key`` with optional metadata.

        Empty metadata values are dropped before sending.
        """
        entry = self.get(key)
        upload = file or self._staged.get(entry.key)
        issue = validate_upload_file(upload, self.max_upload_bytes)
        if issue is not None:
            return self._refuse(create_validation_error(issue.description), issue.title, issue.description)

        clean_meta = {k: str(v) for k, v in (meta or {}).items() if v not in (None, "")}

        try:
            stored = self._gateway.upload_document(
                self.application_id,
                self.application_type,
                key,
                upload,
                clean_meta or None,
            )
        except PortalError as e:
            logger.warning(f"Upload of {key} for application {self.application_id} failed: {e.message}")
            return self._refuse(e, "Upload failed", e.message or "Failed to upload document")

        self._staged.pop(entry.key, None)
        entry.checked = True
        entry.file_id = stored.id
        entry.file_name = stored.file_name or upload.file_name
        entry.meta = {**entry.meta, **clean_meta, **stored.meta}
        self.last_error = None
        self._notifier.notify(
            "Document uploaded successfully",
            f"{upload.file_name} has been uploaded and attached.",
        )
        return True

    def toggle_checked(self, key: str, checked: bool) -> bool:
        """Check (only with an attachment) or uncheck an entry."""
        entry = self.get(key)
        if checked and not entry.has_attachment:
            return self._refuse(
                create_document_required_error(key),
                "Document required",
                "Please attach a document before checking this item.",
            )

        entry.checked = checked
        self.last_error = None
        if checked:
            self._notifier.notify("Document verified", "Document has been marked as submitted.")
        return True

    def completion(self) -> Tuple[int, int]:
        """(required entries checked, required total)."""
        done = sum(1 for key in REQUIRED_DOCUMENT_KEYS if self._entries[key].checked)
        return done, REQUIRED_TOTAL

    def optional_completion(self) -> Tuple[int, int]:
        """(optional entries checked, optional total)."""
        done = sum(1 for key in OPTIONAL_DOCUMENT_KEYS if self._entries[key].checked)
        return done, OPTIONAL_TOTAL

    @property
    def is_complete(self) -> bool:
        completed, total = self.completion()
        return completed == total

    def finish(self, on_complete: Callable[[], None]) -> bool:
        """
        Hand control back to the caller once every required document is in.

        Invokes ``on_complete`` only when the required set is complete;
        otherwise reports the missing count and returns False.
        """
        completed, total = self.completion()
        if completed < total:
            return self._refuse(
                create_requirements_incomplete_error(completed, total),
                "Requirements incomplete",
                f"Please complete all required documents ({completed}/{total}) before proceeding.",
            )

        self.last_error = None
        on_complete()
        return True

    def to_dict(self) -> dict:
        required_completed, required_total = self.completion()
        optional_completed, optional_total = self.optional_completion()
        return {
            "application_id": self.application_id,
            "requirements": [entry.to_dict() for entry in self.requirements],
            "required_completed": required_completed,
            "required_total": required_total,
            "optional_completed": optional_completed,
            "optional_total": optional_total,
            "is_complete": self.is_complete,
        }
