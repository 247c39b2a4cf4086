"""
Unit tests for DocumentRequirementTracker.

Tests loading existing documents, file validation, uploads, the attachment
requirement for checking entries and completion reporting.
"""

import pytest

from conftest import REQUIRED_DOCUMENTS, FakePortalGateway, make_pdf, stored
from models.document import StagedFile
from models.errors import ErrorCode, PortalError, create_db_not_found_error, create_upload_error
from utils.document_tracker import OPTIONAL_TOTAL, REQUIRED_TOTAL, DocumentRequirementTracker

MB = 1024 * 1024


@pytest.fixture
def tracker(gateway, notifier):
    return DocumentRequirementTracker("42", gateway, notifier)


class TestInitialState:
    """Tests for a tracker with no stored documents."""

    def test_totals(self):
        assert REQUIRED_TOTAL == 4
        assert OPTIONAL_TOTAL == 8

    def test_empty_load_has_no_completion(self, tracker):
        assert tracker.load_existing() is True
        assert tracker.completion() == (0, 4)
        assert tracker.optional_completion() == (0, 8)
        assert tracker.is_complete is False

    def test_check_without_attachment_is_refused(self, tracker, notifier):
        tracker.load_existing()

        assert tracker.toggle_checked("passport", True) is False
        assert tracker.get("passport").checked is False
        assert tracker.last_error.code == ErrorCode.DOCUMENT_REQUIRED
        assert notifier.notifications[-1].title == "Document required"
        assert notifier.notifications[-1].destructive is True
        assert tracker.completion() == (0, 4)

    def test_unknown_key_raises(self, tracker):
        with pytest.raises(PortalError) as exc_info:
            tracker.get("birth_certificate")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


class TestLoadExisting:
    """Tests for rebuilding entries from the documents store."""

    def test_matches_documents_by_type(self, notifier):
        gateway = FakePortalGateway(documents=REQUIRED_DOCUMENTS[:2])
        tracker = DocumentRequirementTracker("42", gateway, notifier)
        tracker.load_existing()

        passport = tracker.get("passport")
        assert passport.checked is True
        assert passport.file_id == "1"
        assert passport.file_name == "passport.pdf"
        assert passport.meta == {"passport_number": "P1234567"}
        assert tracker.completion() == (2, 4)

    def test_first_match_wins(self, notifier):
        gateway = FakePortalGateway(
            documents=[stored("clearance", "20", "newest.pdf"), stored("clearance", "10", "old.pdf")]
        )
        tracker = DocumentRequirementTracker("42", gateway, notifier)
        tracker.load_existing()

        assert tracker.get("clearance").file_id == "20"
        assert tracker.optional_completion() == (1, 8)

    def test_ignores_unknown_document_types(self, notifier):
        gateway = FakePortalGateway(documents=[stored("evaluation_requirements_checklist", "5")])
        tracker = DocumentRequirementTracker("42", gateway, notifier)
        tracker.load_existing()
        assert tracker.completion() == (0, 4)

    def test_failure_falls_back_silently(self, notifier):
        gateway = FakePortalGateway(documents=REQUIRED_DOCUMENTS)
        gateway.fail_on["list_documents"] = create_db_not_found_error("portal.db")
        tracker = DocumentRequirementTracker("42", gateway, notifier)

        assert tracker.load_existing() is False
        assert tracker.completion() == (0, 4)
        assert notifier.notifications == []

    def test_reload_is_idempotent(self, notifier):
        gateway = FakePortalGateway(documents=REQUIRED_DOCUMENTS)
        tracker = DocumentRequirementTracker("42", gateway, notifier)
        tracker.load_existing()
        first = tracker.to_dict()
        tracker.load_existing()
        assert tracker.to_dict() == first

    def test_reload_discards_local_changes(self, tracker, gateway):
        tracker.load_existing()
        tracker.confirm_upload("clearance", make_pdf())
        tracker.select_file("passport", make_pdf())
        gateway.documents.clear()
        tracker.load_existing()
        assert tracker.get("clearance").checked is False
        assert tracker.staged("passport") is None


class TestFileSelection:
    """Tests for select_file validation."""

    def test_valid_pdf_is_staged(self, tracker):
        pdf = make_pdf()
        assert tracker.select_file("passport", pdf) is True
        assert tracker.staged("passport") is pdf
        assert tracker.get("passport").checked is False
        assert tracker.get("passport").has_attachment is False

    def test_oversized_png_is_rejected(self, tracker, notifier):
        tracker.load_existing()
        big = StagedFile("scan.png", "image/png", b"x" * (6 * MB))

        assert tracker.select_file("passport", big) is False
        assert tracker.staged("passport") is None
        assert tracker.completion() == (0, 4)
        assert notifier.notifications[-1].title == "File too large"
        assert notifier.notifications[-1].description == "Please upload files smaller than 5MB."

    def test_wrong_format_is_rejected(self, tracker, notifier):
        gif = StagedFile("photo.gif", "image/gif", b"GIF89a")
        assert tracker.select_file("passport", gif) is False
        assert notifier.notifications[-1].title == "Invalid file format"
        assert tracker.last_error.code == ErrorCode.VALIDATION_ERROR

    def test_missing_file_is_rejected(self, tracker, notifier):
        assert tracker.select_file("passport", None) is False
        assert notifier.notifications[-1].title == "Upload error"


class TestConfirmUpload:
    """Tests for uploading and attaching documents."""

    def test_upload_checks_entry(self, tracker, gateway, notifier):
        tracker.load_existing()
        tracker.select_file("passport", make_pdf("passport.pdf", size=2 * MB))

        assert tracker.confirm_upload("passport") is True
        entry = tracker.get("passport")
        assert entry.checked is True
        assert entry.file_id == "100"
        assert tracker.staged("passport") is None
        assert entry.file_name == "passport.pdf"
        assert tracker.completion() == (1, 4)
        assert notifier.notifications[-1].title == "Document uploaded successfully"
        assert "upload_document" in gateway.calls

    def test_upload_sends_non_empty_meta(self, tracker, gateway):
        tracker.confirm_upload(
            "passport",
            make_pdf(),
            meta={"passport_number": "P7654321", "passport_expiry": ""},
        )
        assert gateway.documents[0].meta == {"passport_number": "P7654321"}
        assert tracker.get("passport").meta == {"passport_number": "P7654321"}

    def test_upload_without_file_is_refused(self, tracker, gateway, notifier):
        assert tracker.confirm_upload("passport") is False
        assert notifier.notifications[-1].title == "Upload error"
        assert "upload_document" not in gateway.calls

    def test_upload_failure_leaves_entry_unchecked(self, tracker, gateway, notifier):
        gateway.fail_on["upload_document"] = create_upload_error("storage offline")
        tracker.select_file("passport", make_pdf())

        assert tracker.confirm_upload("passport") is False
        assert tracker.get("passport").checked is False
        assert tracker.get("passport").file_id is None
        assert tracker.last_error.code == ErrorCode.UPLOAD_ERROR
        assert notifier.notifications[-1].title == "Upload failed"
        assert notifier.notifications[-1].description == "Upload failed: storage offline"


class TestToggleChecked:
    """Tests for manually checking and unchecking entries."""

    def test_check_with_only_staged_file_is_refused(self, tracker, notifier):
        tracker.select_file("clearance", make_pdf())

        assert tracker.toggle_checked("clearance", True) is False
        assert tracker.get("clearance").checked is False
        assert tracker.last_error.code == ErrorCode.DOCUMENT_REQUIRED
        assert notifier.notifications[-1].title == "Document required"

    def test_staged_files_never_complete_requirements(self, tracker, gateway):
        tracker.load_existing()
        for key in ("passport", "work_visa", "employment_contract", "tesda_license"):
            tracker.select_file(key, make_pdf(f"{key}.pdf"))
            tracker.toggle_checked(key, True)
        calls = []

        assert tracker.completion() == (0, 4)
        assert tracker.finish(lambda: calls.append("done")) is False
        assert calls == []
        assert gateway.documents == []

    def test_recheck_after_upload(self, tracker, notifier):
        tracker.confirm_upload("clearance", make_pdf())
        tracker.toggle_checked("clearance", False)

        assert tracker.toggle_checked("clearance", True) is True
        assert tracker.get("clearance").checked is True
        assert notifier.notifications[-1].title == "Document verified"

    def test_uncheck_is_always_allowed(self, notifier):
        tracker = DocumentRequirementTracker(
            "42", FakePortalGateway(documents=REQUIRED_DOCUMENTS), notifier
        )
        tracker.load_existing()
        assert tracker.toggle_checked("passport", False) is True
        assert tracker.completion() == (3, 4)


class TestFinish:
    """Tests for the completion callback."""

    def test_incomplete_does_not_call_back(self, tracker, notifier):
        tracker.load_existing()
        calls = []

        assert tracker.finish(lambda: calls.append("done")) is False
        assert calls == []
        assert tracker.last_error.code == ErrorCode.REQUIREMENTS_INCOMPLETE
        assert notifier.notifications[-1].description == (
            "Please complete all required documents (0/4) before proceeding."
        )

    def test_complete_calls_back(self, notifier):
        tracker = DocumentRequirementTracker(
            "42", FakePortalGateway(documents=REQUIRED_DOCUMENTS), notifier
        )
        tracker.load_existing()
        calls = []

        assert tracker.finish(lambda: calls.append("done")) is True
        assert calls == ["done"]
        assert tracker.last_error is None

    def test_to_dict(self, notifier):
        tracker = DocumentRequirementTracker(
            "42", FakePortalGateway(documents=REQUIRED_DOCUMENTS), notifier
        )
        tracker.load_existing()
        data = tracker.to_dict()

        assert data["application_id"] == "42"
        assert len(data["requirements"]) == 12
        assert data["required_completed"] == 4
        assert data["is_complete"] is True
