"""
Unit tests for HttpPortalGateway.

Uses httpx.MockTransport to stand in for the portal API and checks request
shapes, envelope unwrapping and the status-code to error-code mapping.
"""

import json

import httpx
import pytest

from clients.http_gateway import HttpPortalGateway
from clients.notifier import RecordingNotifier
from conftest import fixed_clock, make_pdf
from models.checklist import MilestoneState, StatusChecklist
from models.errors import ErrorCode, PortalError
from models.status import Milestone
from models.step_details import ConfirmationDetails, InterviewDetails
from utils.checklist_coordinator import ChecklistCoordinator, SaveOutcome

BASE_URL = "http://portal.test"

APPLICATION = {
    "id": 42,
    "control_number": "DHPSW-ROIVA-2025-0307-001-001",
    "name": "JUAN DELA CRUZ",
    "status": "pending",
    "status_checklist": {"evaluated": {"checked": False}},
}


def gateway_for(handler):
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpPortalGateway(BASE_URL, client=client)


def ok(data, status_code=200):
    return httpx.Response(status_code, json={"success": True, "data": data})


def fail(status_code, error, data=None):
    body = {"success": False, "error": error}
    if data is not None:
        body["data"] = data
    return httpx.Response(status_code, json=body)


class TestApplications:
    """Tests for application endpoints."""

    def test_get_application(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return ok(APPLICATION)

        application = gateway_for(handler).get_application("42")

        assert seen == [("GET", "/api/direct-hire/42")]
        assert application.id == "42"
        assert application.status_checklist == StatusChecklist()

    def test_get_application_not_found(self):
        gateway = gateway_for(lambda request: fail(404, "Application not found"))
        with pytest.raises(PortalError) as exc_info:
            gateway.get_application("42")
        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert exc_info.value.message == "Direct hire application not found: 42"

    def test_create_application_posts_json(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return ok(APPLICATION, 201)

        application = gateway_for(handler).create_direct_hire_application({"name": "Juan"})
        assert bodies == [{"name": "Juan"}]
        assert application.control_number == APPLICATION["control_number"]

    def test_validation_failure(self):
        gateway = gateway_for(lambda request: fail(400, "Invalid salary"))
        with pytest.raises(PortalError) as exc_info:
            gateway.create_direct_hire_application({})
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.message == "Invalid salary"


class TestDocuments:
    """Tests for document endpoints."""

    def test_list_documents_query(self):
        params = []

        def handler(request):
            params.append(dict(request.url.params))
            return ok(
                [
                    {"id": 5, "document_type": "passport", "file_name": "p.pdf", "meta": None},
                    {"id": 6, "document_type": "clearance", "file_name": "c.pdf"},
                ]
            )

        documents = gateway_for(handler).list_documents("42", "direct_hire")

        assert params == [{"applicationId": "42", "applicationType": "direct_hire"}]
        assert [d.id for d in documents] == ["5", "6"]
        assert documents[0].meta == {}

    def test_list_documents_null_data(self):
        assert gateway_for(lambda request: ok(None)).list_documents("42", "direct_hire") == []

    def test_upload_sends_multipart_form(self):
        captured = {}

        def handler(request):
            captured["content_type"] = request.headers["content-type"]
            captured["body"] = request.content
            return ok({"id": 9, "file_name": "passport.pdf"})

        document = gateway_for(handler).upload_document(
            "42", "direct_hire", "passport", make_pdf("passport.pdf"), {"passport_number": "P1"}
        )

        assert captured["content_type"].startswith("multipart/form-data")
        assert b'name="documentName"' in captured["body"]
        assert b"passport_number" in captured["body"]
        assert document.id == "9"
        assert document.document_type == "passport"
        assert document.meta == {"passport_number": "P1"}

    def test_upload_without_document_id(self):
        gateway = gateway_for(lambda request: ok({}))
        with pytest.raises(PortalError) as exc_info:
            gateway.upload_document("42", "direct_hire", "passport", make_pdf())
        assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR


class TestStatusChecklist:
    """Tests for PATCH of the status checklist."""

    def test_sends_checklist_payload(self):
        bodies = []
        checklist = StatusChecklist(
            evaluated=MilestoneState(checked=True, timestamp="2025-03-07T10:15:00.000Z")
        )

        def handler(request):
            assert request.method == "PATCH"
            bodies.append(json.loads(request.content))
            return ok({**APPLICATION, "status_checklist": checklist.to_payload()})

        application = gateway_for(handler).update_status_checklist("42", checklist)

        assert bodies[0] == {"status_checklist": checklist.to_payload()}
        assert application.status_checklist.is_checked(Milestone.EVALUATED)

    def test_save_keeps_confirmation_records(self):
        stored_checklist = {
            "for_confirmation": {"checked": True, "timestamp": "2025-03-05T09:00:00.000Z"},
            "for_confirmation_confirmed": {"checked": True, "timestamp": "2025-03-05T09:05:00.000Z"},
            "for_confirmation_meta": {"verifier_type": "MWO", "verifier_office": "Riyadh"},
        }
        bodies = []

        def handler(request):
            if request.method == "PATCH":
                body = json.loads(request.content)
                bodies.append(body)
                return ok({**APPLICATION, "status_checklist": body["status_checklist"]})
            return ok({**APPLICATION, "status_checklist": stored_checklist})

        coordinator = ChecklistCoordinator.for_application(
            "42", gateway_for(handler), RecordingNotifier(), clock=fixed_clock()
        )
        coordinator.toggle_milestone("emailed_to_dhad", True)

        assert coordinator.confirm_save() == SaveOutcome.SAVED
        sent = bodies[0]["status_checklist"]
        assert sent["emailed_to_dhad"]["checked"] is True
        assert sent["for_confirmation_confirmed"] == stored_checklist["for_confirmation_confirmed"]
        assert sent["for_confirmation_meta"] == stored_checklist["for_confirmation_meta"]
        assert coordinator.persisted.confirmation_confirmed is True

    def test_bare_success_refetches_application(self):
        methods = []

        def handler(request):
            methods.append(request.method)
            if request.method == "PATCH":
                return httpx.Response(200, json={"success": True})
            return ok(APPLICATION)

        application = gateway_for(handler).update_status_checklist("42", StatusChecklist())
        assert methods == ["PATCH", "GET"]
        assert application.id == "42"

    def test_server_error_is_retryable(self):
        gateway = gateway_for(lambda request: fail(503, "Service unavailable"))
        with pytest.raises(PortalError) as exc_info:
            gateway.update_status_checklist("42", StatusChecklist())
        assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR
        assert exc_info.value.retryable is True


class TestGenerateEvaluationChecklist:
    """Tests for the evaluation checklist endpoint."""

    def test_conflict_carries_existing_id(self):
        gateway = gateway_for(lambda request: fail(409, "Checklist already exists", {"existingId": 17}))
        with pytest.raises(PortalError) as exc_info:
            gateway.generate_evaluation_checklist("42")
        assert exc_info.value.code == ErrorCode.CONFLICT
        assert exc_info.value.details == {"existing_id": "17"}

    def test_override_flag(self):
        queries = []

        def handler(request):
            queries.append(dict(request.url.params))
            return ok({"id": 3, "document_type": "evaluation_requirements_checklist", "file_name": "x.md"})

        gateway = gateway_for(handler)
        gateway.generate_evaluation_checklist("42")
        document = gateway.generate_evaluation_checklist("42", override=True)

        assert queries == [{}, {"override": "true"}]
        assert document.id == "3"


class TestMarkDocumentsCompleted:
    """Tests for the documents-completed endpoint."""

    def test_puts_completion_flag(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return ok(None)

        gateway_for(handler).mark_documents_completed("42", "2025-03-07T10:15:00.000Z")

        assert seen == [
            (
                "PUT",
                "/api/direct-hire/42/documents",
                {"documentsCompleted": True, "completedAt": "2025-03-07T10:15:00.000Z"},
            )
        ]

    def test_unknown_application(self):
        gateway = gateway_for(lambda request: fail(404, "Application not found"))
        with pytest.raises(PortalError) as exc_info:
            gateway.mark_documents_completed("42", "2025-03-07T10:15:00.000Z")
        assert exc_info.value.code == ErrorCode.NOT_FOUND


class TestStepDocuments:
    """Tests for the confirmation and For Interview endpoints."""

    def test_confirmation_posts_details(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, dict(request.url.params), json.loads(request.content)))
            return ok({"id": 8, "document_type": "confirmation", "file_name": "c.md"})

        details = ConfirmationDetails(
            verifier_type="mwo", verifier_office=" Riyadh ", verification_image_id="5"
        )
        document = gateway_for(handler).generate_confirmation_document("42", details, override=True)

        assert seen == [
            (
                "/api/direct-hire/42/confirmation",
                {"override": "true"},
                {"verifier_type": "MWO", "verifier_office": "Riyadh", "verification_image_id": "5"},
            )
        ]
        assert document.id == "8"

    def test_confirmation_conflict(self):
        gateway = gateway_for(lambda request: fail(409, "Confirmation already exists", {"existingId": 8}))
        with pytest.raises(PortalError) as exc_info:
            gateway.generate_confirmation_document(
                "42", ConfirmationDetails(verifier_type="OTHERS", others_text="DMW")
            )
        assert exc_info.value.code == ErrorCode.CONFLICT
        assert exc_info.value.details == {"existing_id": "8"}

    def test_interview_documents_response(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return ok(
                {
                    "oec": {"id": 9, "file_name": "oec.md"},
                    "attachments": {"id": 10, "file_name": "attach.md"},
                }
            )

        details = InterviewDetails(
            processed_workers_principal=12, processed_workers_las=3, screenshot_id="70"
        )
        documents = gateway_for(handler).generate_interview_documents("42", details)

        assert bodies == [{"processed_workers_principal": 12, "processed_workers_las": 3}]
        assert [(d.id, d.document_type) for d in documents] == [
            ("9", "issuance_of_oec_memorandum"),
            ("10", "attachments_screenshots"),
        ]
        assert documents[0].application_id == "42"

    def test_interview_conflict_carries_both_ids(self):
        gateway = gateway_for(
            lambda request: fail(
                409,
                "For Interview documents already exist",
                {"existingOecId": 9, "existingAttachId": 10},
            )
        )
        with pytest.raises(PortalError) as exc_info:
            gateway.generate_interview_documents(
                "42", InterviewDetails(processed_workers_principal=1, processed_workers_las=1)
            )
        assert exc_info.value.details == {"existing_oec_id": "9", "existing_attach_id": "10"}

    def test_interview_response_without_documents(self):
        gateway = gateway_for(lambda request: ok({}))
        with pytest.raises(PortalError) as exc_info:
            gateway.generate_interview_documents(
                "42", InterviewDetails(processed_workers_principal=1, processed_workers_las=1)
            )
        assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR


class TestTransportFailures:
    """Tests for network-level failures."""

    def test_connect_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PortalError) as exc_info:
            gateway_for(handler).get_application("42")
        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert exc_info.value.retryable is True

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(PortalError) as exc_info:
            gateway_for(handler).list_documents("42", "direct_hire")
        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert "timed out" in exc_info.value.message

    def test_non_json_error_body(self):
        gateway = gateway_for(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))
        with pytest.raises(PortalError) as exc_info:
            gateway.get_application("42")
        assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR
        assert "Bad Gateway" in exc_info.value.message

    def test_close_leaves_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: ok(None)))
        HttpPortalGateway(BASE_URL, client=client).close()
        assert client.is_closed is False
        client.close()
