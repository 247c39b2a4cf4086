"""
Integration tests for generate_evaluation_checklist tool.
"""

from unittest.mock import patch

import pytest

from conftest import make_pdf
from models.document import EVALUATION_CHECKLIST_DOCUMENT_TYPE, REQUIRED_DOCUMENT_KEYS
from models.errors import create_upstream_error
from tools.generate_evaluation_checklist import generate_evaluation_checklist


class TestGenerateEvaluationChecklistTool:
    """Integration tests for the generate_evaluation_checklist tool."""

    @pytest.fixture
    def application_id(self, local_gateway, application_payload):
        return local_gateway.create_direct_hire_application(application_payload).id

    @pytest.fixture
    def ready_application_id(self, local_gateway, application_id):
        for key in REQUIRED_DOCUMENT_KEYS:
            local_gateway.upload_document(application_id, "direct_hire", key, make_pdf(f"{key}.pdf"))
        return application_id

    @pytest.fixture
    def run(self, local_gateway):
        def _run(args):
            with patch(
                "tools.generate_evaluation_checklist.build_gateway", return_value=local_gateway
            ):
                return generate_evaluation_checklist(args)

        return _run

    def checklists(self, gateway, application_id):
        return [
            d
            for d in gateway.list_documents(application_id)
            if d.document_type == EVALUATION_CHECKLIST_DOCUMENT_TYPE
        ]

    def test_skipped_when_required_documents_missing(self, run, application_id, local_gateway):
        result = run({"application_id": application_id})

        assert result["outcome"] == "skipped"
        assert result["success"] is False
        assert result["error"] == "Requirements incomplete: 0/4 required documents attached"
        assert self.checklists(local_gateway, application_id) == []

    def test_generates_checklist(self, run, ready_application_id, local_gateway):
        result = run({"application_id": ready_application_id})

        assert result["outcome"] == "generated"
        assert result["success"] is True
        assert result["document_counts"]["required_completed"] == 4
        assert result["notifications"][-1]["title"] == "Documents generated"

        generated = self.checklists(local_gateway, ready_application_id)
        assert len(generated) == 1
        assert generated[0].file_name.endswith(".md")

    def test_override_replaces_existing(self, run, ready_application_id, local_gateway):
        run({"application_id": ready_application_id})
        first = self.checklists(local_gateway, ready_application_id)[0]

        result = run({"application_id": ready_application_id, "override": True})

        assert result["outcome"] == "overridden"
        assert result["notifications"][-1]["title"] == "Documents overridden"
        remaining = self.checklists(local_gateway, ready_application_id)
        assert len(remaining) == 1
        assert remaining[0].id != first.id

    def test_keep_existing(self, run, ready_application_id, local_gateway):
        run({"application_id": ready_application_id})
        first = self.checklists(local_gateway, ready_application_id)[0]

        result = run({"application_id": ready_application_id, "override": False})

        assert result["outcome"] == "kept"
        assert result["success"] is True
        assert result["notifications"][-1]["title"] == "Generation cancelled"
        assert [d.id for d in self.checklists(local_gateway, ready_application_id)] == [first.id]

    def test_portal_failure(self, complete_gateway):
        complete_gateway.fail_on["generate_evaluation_checklist"] = create_upstream_error("boom")
        with patch(
            "tools.generate_evaluation_checklist.build_gateway", return_value=complete_gateway
        ):
            result = generate_evaluation_checklist({"application_id": "42"})

        assert result["outcome"] == "failed"
        assert result["success"] is False
        assert result["notifications"][-1]["title"] == "Failed to generate"
        assert complete_gateway.closed is True

    def test_unknown_application(self, run):
        result = run({"application_id": "999"})
        assert result["error"]["code"] == "NOT_FOUND"

    def test_invalid_override_type(self):
        result = generate_evaluation_checklist({"application_id": "1", "override": "yes"})
        assert result["error"]["code"] == "VALIDATION_ERROR"
