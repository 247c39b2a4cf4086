"""
Unit tests for tool request schemas and the Pydantic error mapper.
"""

import pytest
from pydantic import ValidationError

from models.errors import ErrorCode
from schemas.direct_hire import CreateDirectHireApplicationRequest, LoadDocumentRequirementsRequest
from schemas.update_status_checklist import (
    GenerateEvaluationChecklistRequest,
    MilestoneChange,
    UpdateStatusChecklistRequest,
)
from schemas.upload_document import UploadDocumentRequest
from utils.pydantic_error_mapper import map_pydantic_validation_error


def mapped(schema, args):
    with pytest.raises(ValidationError) as exc_info:
        schema.model_validate(args)
    return map_pydantic_validation_error(exc_info.value)


class TestApplicationIdMixin:
    def test_integer_id_becomes_string(self):
        request = LoadDocumentRequirementsRequest.model_validate({"application_id": 42})
        assert request.application_id == "42"

    def test_blank_id(self):
        error = mapped(LoadDocumentRequirementsRequest, {"application_id": "  "})
        assert error.code == ErrorCode.VALIDATION_ERROR
        assert error.message == "Invalid application_id: cannot be empty"

    def test_missing_id(self):
        error = mapped(LoadDocumentRequirementsRequest, {})
        assert error.message.startswith("Invalid application_id:")

    def test_blank_db_path(self):
        error = mapped(LoadDocumentRequirementsRequest, {"application_id": "1", "db_path": " "})
        assert error.message == "Invalid db_path: cannot be empty"

    def test_unknown_fields_are_ignored(self):
        request = LoadDocumentRequirementsRequest.model_validate({"application_id": "1", "extra": 1})
        assert not hasattr(request, "extra")


class TestCreateDirectHireApplicationRequest:
    def test_payload_excludes_db_path_and_unset(self):
        request = CreateDirectHireApplicationRequest.model_validate(
            {
                "name": "Juan",
                "sex": "male",
                "salary": 1500,
                "jobsite": "Riyadh",
                "position": "Nurse",
                "db_path": "/tmp/portal.db",
            }
        )
        assert request.application_payload() == {
            "name": "Juan",
            "sex": "male",
            "salary": 1500.0,
            "jobsite": "Riyadh",
            "position": "Nurse",
        }

    def test_strict_salary_type(self):
        error = mapped(
            CreateDirectHireApplicationRequest,
            {"name": "a", "sex": "male", "salary": "1500", "jobsite": "b", "position": "c"},
        )
        assert error.message.startswith("Invalid salary:")


class TestUploadDocumentRequest:
    def test_valid(self):
        request = UploadDocumentRequest.model_validate(
            {
                "application_id": "1",
                "document_key": "passport",
                "file_path": "/tmp/p.pdf",
                "meta": {"passport_number": "P1"},
            }
        )
        assert request.meta == {"passport_number": "P1"}
        assert request.content_type is None

    def test_blank_file_path(self):
        error = mapped(
            UploadDocumentRequest,
            {"application_id": "1", "document_key": "passport", "file_path": ""},
        )
        assert error.message == "Invalid file_path: cannot be empty"


class TestUpdateStatusChecklistRequest:
    def test_parses_changes(self):
        request = UpdateStatusChecklistRequest.model_validate(
            {
                "application_id": "1",
                "changes": [{"milestone": "evaluated", "checked": True}],
                "confirm": True,
            }
        )
        assert request.changes == [MilestoneChange(milestone="evaluated", checked=True)]
        assert request.confirm is True
        assert request.dry_run is False
        assert request.generate_document is False

    def test_empty_changes(self):
        error = mapped(UpdateStatusChecklistRequest, {"application_id": "1", "changes": []})
        assert error.message == "Invalid changes: cannot be empty"

    @pytest.mark.parametrize(
        "change,message",
        [
            ("evaluated", "Invalid changes[0]: expected an object"),
            ({"checked": True}, "Invalid changes[0].milestone: must be a non-empty string"),
            ({"milestone": "evaluated", "checked": "yes"}, "Invalid changes[0].checked: must be a boolean"),
        ],
    )
    def test_invalid_change(self, change, message):
        error = mapped(UpdateStatusChecklistRequest, {"application_id": "1", "changes": [change]})
        assert error.message == message

    def test_strict_confirm_flag(self):
        error = mapped(
            UpdateStatusChecklistRequest,
            {
                "application_id": "1",
                "changes": [{"milestone": "evaluated", "checked": True}],
                "confirm": "true",
            },
        )
        assert error.message.startswith("Invalid confirm:")


class TestGenerateEvaluationChecklistRequest:
    def test_override_defaults_to_true(self):
        request = GenerateEvaluationChecklistRequest.model_validate({"application_id": 3})
        assert request.override is True
