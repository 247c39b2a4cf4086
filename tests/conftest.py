"""
Shared fixtures for the checklist test suite.

``FakePortalGateway`` is an in-memory PortalGateway used by tracker and
coordinator tests; tool tests use a real ``LocalPortalGateway`` on tmp_path.
"""

from datetime import datetime, timezone
from itertools import count

import pytest

from clients.local_gateway import LocalPortalGateway
from clients.notifier import RecordingNotifier
from db.portal_writer import initialize_database
from models.application import DirectHireApplication
from models.checklist import StatusChecklist
from models.document import StagedFile, StoredDocument
from models.errors import create_conflict_error

PDF_BYTES = b"%PDF-1.4\n%test document\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_pdf(name="document.pdf", size=None):
    content = PDF_BYTES if size is None else b"x" * size
    return StagedFile(file_name=name, content_type="application/pdf", content=content)


def make_png(name="screenshot.png"):
    return StagedFile(file_name=name, content_type="image/png", content=PNG_BYTES)


def fixed_clock(value="2025-03-07T10:15:00.000Z"):
    return lambda: value


class FakePortalGateway:
    """In-memory gateway; set ``fail_on`` to make a method raise a PortalError."""

    def __init__(self, application_id="42", checklist=None, documents=None):
        self.application = DirectHireApplication(
            id=application_id,
            control_number="DHPSW-ROIVA-2025-0307-001-001",
            name="JUAN DELA CRUZ",
            status_checklist=checklist or StatusChecklist(),
        )
        self.documents = list(documents or [])
        self.checklist_exists = False
        self.confirmation_exists = False
        self.interview_exists = False
        self.completed_at = None
        self.generated_details = []
        self.fail_on = {}
        self.calls = []
        self.closed = False
        self._ids = count(100)

    def _maybe_fail(self, method):
        self.calls.append(method)
        if method in self.fail_on:
            raise self.fail_on[method]

    def get_application(self, application_id):
        self._maybe_fail("get_application")
        return self.application

    def create_direct_hire_application(self, payload):
        self._maybe_fail("create_direct_hire_application")
        return self.application

    def list_documents(self, application_id, application_type):
        self._maybe_fail("list_documents")
        return list(self.documents)

    def upload_document(self, application_id, application_type, document_name, file, meta=None):
        self._maybe_fail("upload_document")
        stored = StoredDocument(
            id=str(next(self._ids)),
            document_type=document_name,
            file_name=file.file_name,
            meta=meta or {},
            application_id=application_id,
            application_type=application_type,
        )
        self.documents.insert(0, stored)
        return stored

    def update_status_checklist(self, application_id, checklist):
        self._maybe_fail("update_status_checklist")
        self.application = self.application.model_copy(update={"status_checklist": checklist})
        return self.application

    def generate_evaluation_checklist(self, application_id, override=False):
        self.calls.append(f"generate_evaluation_checklist(override={override})")
        if "generate_evaluation_checklist" in self.fail_on:
            raise self.fail_on["generate_evaluation_checklist"]
        if self.checklist_exists and not override:
            raise create_conflict_error("Checklist already exists", existing_id="7")
        self.checklist_exists = True
        return StoredDocument(id="7", document_type="evaluation_requirements_checklist", file_name="x.md")

    def mark_documents_completed(self, application_id, completed_at):
        self._maybe_fail("mark_documents_completed")
        self.completed_at = completed_at

    def generate_confirmation_document(self, application_id, details, override=False):
        self.calls.append(f"generate_confirmation_document(override={override})")
        if "generate_confirmation_document" in self.fail_on:
            raise self.fail_on["generate_confirmation_document"]
        if self.confirmation_exists and not override:
            raise create_conflict_error("Confirmation already exists", existing_id="8")
        self.confirmation_exists = True
        self.generated_details.append(details)
        return StoredDocument(id="8", document_type="confirmation", file_name="confirmation.md")

    def generate_interview_documents(self, application_id, details, override=False):
        self.calls.append(f"generate_interview_documents(override={override})")
        if "generate_interview_documents" in self.fail_on:
            raise self.fail_on["generate_interview_documents"]
        if self.interview_exists and not override:
            raise create_conflict_error(
                "For Interview documents already exist",
                existing_oec_id="9",
                existing_attach_id="10",
            )
        self.interview_exists = True
        self.generated_details.append(details)
        return [
            StoredDocument(id="9", document_type="issuance_of_oec_memorandum", file_name="oec.md"),
            StoredDocument(id="10", document_type="attachments_screenshots", file_name="attach.md"),
        ]

    def close(self):
        self.closed = True


def stored(document_type, doc_id, file_name=None, meta=None):
    return StoredDocument(
        id=doc_id,
        document_type=document_type,
        file_name=file_name or f"{document_type}.pdf",
        meta=meta or {},
    )


REQUIRED_DOCUMENTS = [
    stored("passport", "1", meta={"passport_number": "P1234567"}),
    stored("work_visa", "2"),
    stored("employment_contract", "3"),
    stored("tesda_license", "4"),
]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gateway():
    return FakePortalGateway()


@pytest.fixture
def complete_gateway():
    return FakePortalGateway(documents=REQUIRED_DOCUMENTS)


@pytest.fixture
def portal_db(tmp_path):
    db_path = tmp_path / "portal.db"
    initialize_database(str(db_path))
    return db_path


@pytest.fixture
def local_gateway(tmp_path, portal_db):
    return LocalPortalGateway(
        db_path=str(portal_db),
        storage_dir=str(tmp_path / "uploads"),
        now=lambda: datetime(2025, 3, 7, 10, 15, tzinfo=timezone.utc),
    )


@pytest.fixture
def application_payload():
    return {
        "name": "Juan Dela Cruz",
        "sex": "Male",
        "salary": 1500,
        "jobsite": "Riyadh, Saudi Arabia",
        "position": "Nurse",
        "evaluator": "Maria Santos",
        "employer": "Al Noor Hospital",
    }


@pytest.fixture
def sample_pdf(tmp_path):
    path = tmp_path / "passport.pdf"
    path.write_bytes(PDF_BYTES)
    return path
