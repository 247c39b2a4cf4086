"""
Portal collaborator contract.

``PortalGateway`` is everything the tracker and coordinator need from the
surrounding portal: reading and creating applications, listing and uploading
documents, persisting the status checklist, recording that the evaluation
documents are complete and generating the evaluation checklist, the
confirmation document and the For Interview documents. Every method raises
``PortalError`` on failure; generation raises CONFLICT when the document
already exists and ``override`` is False.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol

from models.application import DirectHireApplication
from models.checklist import StatusChecklist
from models.document import StagedFile, StoredDocument
from models.step_details import ConfirmationDetails, InterviewDetails


class PortalGateway(Protocol):
    def get_application(self, application_id: str) -> DirectHireApplication: ...

    def create_direct_hire_application(
        self, payload: Mapping[str, Any]
    ) -> DirectHireApplication: ...

    def list_documents(
        self, application_id: str, application_type: str
    ) -> List[StoredDocument]: ...

    def upload_document(
        self,
        application_id: str,
        application_type: str,
        document_name: str,
        file: StagedFile,
        meta: Optional[Dict[str, str]] = None,
    ) -> StoredDocument: ...

    def update_status_checklist(
        self, application_id: str, checklist: StatusChecklist
    ) -> DirectHireApplication: ...

    def generate_evaluation_checklist(
        self, application_id: str, override: bool = False
    ) -> StoredDocument: ...

    def mark_documents_completed(self, application_id: str, completed_at: str) -> None: ...

    def generate_confirmation_document(
        self, application_id: str, details: ConfirmationDetails, override: bool = False
    ) -> StoredDocument: ...

    def generate_interview_documents(
        self, application_id: str, details: InterviewDetails, override: bool = False
    ) -> List[StoredDocument]: ...

    def close(self) -> None: ...
