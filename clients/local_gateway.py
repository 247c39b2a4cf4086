"""
Local portal gateway backed by SQLite and a file storage directory.

Implements the ``PortalGateway`` contract without a running portal: the
application and document records live in the local database, uploaded files
under ``<storage_dir>/<application_type>/<application_id>/``. Unlike the
portal API, every checklist write is re-validated against the stored copy so
a saved milestone cannot be unchecked.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from db.portal_reader import (
    count_applications_between,
    get_connection,
    query_application,
    query_documents,
)
from db.portal_writer import PortalWriter
from models.application import DirectHireApplication, NewDirectHireApplication
from models.checklist import StatusChecklist
from models.document import (
    ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE,
    CONFIRMATION_DOCUMENT_TYPE,
    EVALUATION_CHECKLIST_DOCUMENT_TYPE,
    GENERATED_DOCUMENT_TYPES,
    INTERVIEW_SCREENSHOT_DOCUMENT_TYPE,
    OEC_MEMORANDUM_DOCUMENT_TYPE,
    VERIFICATION_IMAGE_DOCUMENT_TYPE,
    StagedFile,
    StoredDocument,
)
from models.errors import (
    PortalError,
    create_conflict_error,
    create_not_found_error,
    create_upload_error,
    create_validation_error,
)
from models.status import ApplicationStatus, ApplicationType
from models.step_details import ConfirmationDetails, InterviewDetails
from utils.checklist_policy import check_checklist_update_or_raise, status_for_checklist
from utils.control_number import format_control_number, month_bounds, year_bounds
from utils.currency import convert_to_usd
from utils.evaluation_renderer import evaluation_checklist_file_name, render_evaluation_checklist
from utils.file_ops import atomic_write, remove_file, safe_file_name
from utils.file_validation import DEFAULT_MAX_UPLOAD_BYTES, validate_upload_file
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.step_documents import (
    attachments_file_name,
    confirmation_file_name,
    oec_memorandum_file_name,
    render_attachments_screenshots,
    render_confirmation_document,
    render_oec_memorandum,
)
from utils.validation import format_utc_timestamp, validate_application_id

logger = logging.getLogger(__name__)

MARKDOWN_MIME_TYPE = "text/markdown"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalPortalGateway:
    """PortalGateway over the local SQLite store."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        storage_dir: Optional[str] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        now: Callable[[], datetime] = _utc_now,
    ):
        """
        Args:
            db_path: Database path override (see ``resolve_db_path``)
            storage_dir: Directory for uploaded and generated files
            max_upload_bytes: Upload size limit enforced on the store side
            now: Clock used for timestamps and control numbers
        """
        self.db_path = db_path
        self.storage_dir = Path(storage_dir) if storage_dir else Path("data") / "uploads"
        self.max_upload_bytes = max_upload_bytes
        self._now = now

    def close(self) -> None:
        """Nothing to release; connections are opened per call."""

    def _timestamp(self) -> str:
        return format_utc_timestamp(self._now())

    def get_application(self, application_id: str) -> DirectHireApplication:
        application_id = validate_application_id(application_id)
        with get_connection(self.db_path) as conn:
            record = query_application(conn, application_id)
        if record is None:
            raise create_not_found_error("Direct hire application", application_id)
        return DirectHireApplication.model_validate(record)

    def create_direct_hire_application(
        self, payload: Mapping[str, Any]
    ) -> DirectHireApplication:
        """
        Create an application with an all-unchecked status checklist.

        The salary is stored in USD (original amount and currency kept) and a
        control number is assigned from the month and year sequence.
        """
        try:
            new = NewDirectHireApplication.model_validate(dict(payload))
        except ValidationError as e:
            raise map_pydantic_validation_error(e) from e

        moment = self._now()
        timestamp = format_utc_timestamp(moment)
        salary_usd = (
            new.salary
            if new.salary_currency == "USD"
            else round(convert_to_usd(new.salary, new.salary_currency), 2)
        )

        with PortalWriter(self.db_path) as writer:
            monthly = count_applications_between(writer.conn, *month_bounds(moment)) + 1
            yearly = count_applications_between(writer.conn, *year_bounds(moment)) + 1
            control_number = format_control_number(moment, monthly, yearly)

            application_id = writer.insert_application(
                {
                    "control_number": control_number,
                    "name": new.name,
                    "sex": new.sex,
                    "salary": salary_usd,
                    "raw_salary": new.salary,
                    "salary_currency": new.salary_currency,
                    "jobsite": new.jobsite,
                    "position": new.position,
                    "job_type": new.job_type,
                    "evaluator": new.evaluator,
                    "employer": new.employer,
                    "status": ApplicationStatus.PENDING.value,
                    "status_checklist": StatusChecklist().to_payload(),
                    "created_at": timestamp,
                    "updated_at": timestamp,
                }
            )
            writer.commit()

        logger.info(f"Created direct hire application {application_id} ({control_number})")
        return self.get_application(application_id)

    def list_documents(
        self, application_id: str, application_type: str = ApplicationType.DIRECT_HIRE.value
    ) -> List[StoredDocument]:
        application_id = validate_application_id(application_id)
        with get_connection(self.db_path) as conn:
            rows = query_documents(conn, application_id, application_type)
        return [StoredDocument.model_validate(row) for row in rows]

    def upload_document(
        self,
        application_id: str,
        application_type: str,
        document_name: str,
        file: StagedFile,
        meta: Optional[Dict[str, str]] = None,
    ) -> StoredDocument:
        """
        Store a file and record it as ``document_name`` for the application.

        Raises:
            PortalError: VALIDATION_ERROR for a rejected file, NOT_FOUND for an
                unknown Direct Hire application, UPLOAD_ERROR if the file
                cannot be written
        """
        application_id = validate_application_id(application_id)
        if not document_name or not document_name.strip():
            raise create_validation_error("Invalid document_name: cannot be empty")

        issue = validate_upload_file(file, self.max_upload_bytes)
        if issue is not None:
            raise create_validation_error(issue.description)

        if application_type == ApplicationType.DIRECT_HIRE.value:
            # Raises NOT_FOUND for unknown or deleted applications
            self.get_application(application_id)

        stored_name = f"{uuid.uuid4().hex[:12]}-{safe_file_name(file.file_name)}"
        target = self.storage_dir / application_type / application_id / stored_name
        try:
            atomic_write(target, file.content)
        except OSError as e:
            raise create_upload_error(f"could not store {file.file_name}", original_error=e) from e

        timestamp = self._timestamp()
        try:
            with PortalWriter(self.db_path) as writer:
                document_id = writer.insert_document(
                    {
                        "application_id": application_id,
                        "application_type": application_type,
                        "document_type": document_name.strip(),
                        "file_name": file.file_name,
                        "file_path": str(target),
                        "file_size": file.size,
                        "mime_type": file.content_type,
                        "meta": meta or None,
                        "created_at": timestamp,
                    }
                )
                writer.commit()
        except PortalError:
            remove_file(target)
            raise

        logger.info(
            f"Stored {document_name} ({file.size} bytes) for {application_type} {application_id}"
        )
        return StoredDocument(
            id=document_id,
            document_type=document_name.strip(),
            file_name=file.file_name,
            meta=meta or {},
            application_id=application_id,
            application_type=application_type,
            mime_type=file.content_type,
            file_size=file.size,
            created_at=timestamp,
        )

    def update_status_checklist(
        self, application_id: str, checklist: StatusChecklist
    ) -> DirectHireApplication:
        """
        Persist a checklist, refusing to uncheck any stored milestone.

        Raises:
            PortalError: CANNOT_UNCHECK if the write unchecks a saved
                milestone, NOT_FOUND for unknown applications
        """
        application_id = validate_application_id(application_id)
        with PortalWriter(self.db_path) as writer:
            record = query_application(writer.conn, application_id)
            if record is None:
                raise create_not_found_error("Direct hire application", application_id)

            previous = StatusChecklist.from_payload(record["status_checklist"])
            to_store = check_checklist_update_or_raise(previous, checklist)
            status = status_for_checklist(to_store, record["status"])

            writer.update_status_checklist(
                application_id, to_store.to_payload(), status, self._timestamp()
            )
            writer.commit()

        return self.get_application(application_id)

    def soft_delete_application(self, application_id: str) -> None:
        """Soft delete an application together with its checklist."""
        application_id = validate_application_id(application_id)
        with PortalWriter(self.db_path) as writer:
            if writer.soft_delete_application(application_id, self._timestamp()) == 0:
                raise create_not_found_error("Direct hire application", application_id)
            writer.commit()

    def mark_documents_completed(self, application_id: str, completed_at: str) -> None:
        """Record that every required evaluation document has been uploaded."""
        application_id = validate_application_id(application_id)
        with PortalWriter(self.db_path) as writer:
            if writer.mark_documents_completed(application_id, completed_at, self._timestamp()) == 0:
                raise create_not_found_error("Direct hire application", application_id)
            writer.commit()
        logger.info(f"Marked documents completed for application {application_id}")

    def _existing_documents(self, application_id: str) -> List[Dict[str, Any]]:
        with get_connection(self.db_path) as conn:
            return query_documents(conn, application_id, ApplicationType.DIRECT_HIRE.value)

    def _store_generated(
        self,
        application: DirectHireApplication,
        generated: List[Tuple[str, str, bytes]],
        replaced: List[Dict[str, Any]],
    ) -> List[StoredDocument]:
        """
        Write generated markdown files and record them, replacing ``replaced``.

        ``generated`` holds ``(document_type, file_name, content)`` triples. The
        records are swapped in one transaction; new files are removed again if
        it fails, old files only once it has committed.
        """
        directory = self.storage_dir / ApplicationType.DIRECT_HIRE.value / application.id
        written: List[Tuple[str, str, bytes, Path]] = []
        try:
            for document_type, file_name, content in generated:
                target = directory / f"{uuid.uuid4().hex[:12]}-{file_name}"
                atomic_write(target, content)
                written.append((document_type, file_name, content, target))
        except OSError as e:
            for *_, target in written:
                remove_file(target)
            raise create_upload_error("could not store the generated documents", original_error=e) from e

        timestamp = self._timestamp()
        documents = []
        try:
            with PortalWriter(self.db_path) as writer:
                for row in replaced:
                    writer.delete_document(str(row["id"]))
                for document_type, file_name, content, target in written:
                    document_id = writer.insert_document(
                        {
                            "application_id": application.id,
                            "application_type": ApplicationType.DIRECT_HIRE.value,
                            "document_type": document_type,
                            "file_name": file_name,
                            "file_path": str(target),
                            "file_size": len(content),
                            "mime_type": MARKDOWN_MIME_TYPE,
                            "meta": None,
                            "created_at": timestamp,
                        }
                    )
                    documents.append(
                        StoredDocument(
                            id=document_id,
                            document_type=document_type,
                            file_name=file_name,
                            application_id=application.id,
                            application_type=ApplicationType.DIRECT_HIRE.value,
                            mime_type=MARKDOWN_MIME_TYPE,
                            file_size=len(content),
                            created_at=timestamp,
                        )
                    )
                writer.commit()
        except PortalError:
            for *_, target in written:
                remove_file(target)
            raise

        for row in replaced:
            remove_file(row["file_path"])
        return documents

    def generate_evaluation_checklist(
        self, application_id: str, override: bool = False
    ) -> StoredDocument:
        """
        Render and store the evaluation requirements checklist.

        Raises:
            PortalError: CONFLICT (with the existing document id) if a
                checklist exists and ``override`` is False
        """
        application = self.get_application(application_id)
        rows = self._existing_documents(application.id)

        existing = [r for r in rows if r["document_type"] == EVALUATION_CHECKLIST_DOCUMENT_TYPE]
        if existing and not override:
            raise create_conflict_error("Checklist already exists", existing_id=str(existing[0]["id"]))

        supporting = [
            StoredDocument.model_validate(r)
            for r in rows
            if r["document_type"] not in GENERATED_DOCUMENT_TYPES
        ]
        content = render_evaluation_checklist(application, supporting).encode("utf-8")
        file_name = evaluation_checklist_file_name(application.control_number)
        (document,) = self._store_generated(
            application, [(EVALUATION_CHECKLIST_DOCUMENT_TYPE, file_name, content)], existing
        )

        logger.info(
            f"Generated evaluation checklist for application {application.id}"
            + (" (override)" if existing else "")
        )
        return document

    def generate_confirmation_document(
        self, application_id: str, details: ConfirmationDetails, override: bool = False
    ) -> StoredDocument:
        """
        Render and store the MWO/POLO/PE/PCG confirmation document.

        Raises:
            PortalError: CONFLICT (with the existing document id) if a
                confirmation exists and ``override`` is False
        """
        application = self.get_application(application_id)
        existing = [
            r
            for r in self._existing_documents(application.id)
            if r["document_type"] == CONFIRMATION_DOCUMENT_TYPE
        ]
        if existing and not override:
            raise create_conflict_error(
                "Confirmation already exists", existing_id=str(existing[0]["id"])
            )

        content = render_confirmation_document(
            application, details, today=self._now().date()
        ).encode("utf-8")
        file_name = confirmation_file_name(application.control_number)
        (document,) = self._store_generated(
            application, [(CONFIRMATION_DOCUMENT_TYPE, file_name, content)], existing
        )

        logger.info(
            f"Generated confirmation document for application {application.id}"
            + (" (override)" if existing else "")
        )
        return document

    def generate_interview_documents(
        self, application_id: str, details: InterviewDetails, override: bool = False
    ) -> List[StoredDocument]:
        """
        Render and store the OEC memorandum and the attachments screenshots list.

        Raises:
            PortalError: CONFLICT (with ``existing_oec_id`` and
                ``existing_attach_id``) if either document exists and
                ``override`` is False
        """
        application = self.get_application(application_id)
        rows = self._existing_documents(application.id)

        oec = [r for r in rows if r["document_type"] == OEC_MEMORANDUM_DOCUMENT_TYPE]
        attachments = [r for r in rows if r["document_type"] == ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE]
        if (oec or attachments) and not override:
            raise create_conflict_error(
                "For Interview documents already exist",
                existing_oec_id=str(oec[0]["id"]) if oec else None,
                existing_attach_id=str(attachments[0]["id"]) if attachments else None,
            )

        today = self._now().date()
        screenshots = [
            StoredDocument.model_validate(r)
            for r in rows
            if r["document_type"]
            in (INTERVIEW_SCREENSHOT_DOCUMENT_TYPE, VERIFICATION_IMAGE_DOCUMENT_TYPE)
        ]
        generated = [
            (
                OEC_MEMORANDUM_DOCUMENT_TYPE,
                oec_memorandum_file_name(application.control_number),
                render_oec_memorandum(application, details, today=today).encode("utf-8"),
            ),
            (
                ATTACHMENTS_SCREENSHOTS_DOCUMENT_TYPE,
                attachments_file_name(application.control_number),
                render_attachments_screenshots(application, screenshots, today=today).encode("utf-8"),
            ),
        ]
        documents = self._store_generated(application, generated, oec + attachments)

        logger.info(
            f"Generated For Interview documents for application {application.id}"
            + (" (override)" if oec or attachments else "")
        )
        return documents
