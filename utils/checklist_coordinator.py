"""
Checklist Coordinator for a Direct Hire application.

Owns one edit session of the status checklist: the persisted snapshot, the
in-memory draft, the document tracker opened when ``evaluated`` is first
checked, the one-time irreversible-action confirmation, the optional
evaluation checklist generation and the For Confirmation and For Interview
steps, which generate their documents and write their records straight to
the store.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

from pydantic import ValidationError

from clients.gateway import PortalGateway
from clients.notifier import Notifier
from models.checklist import (
    CONFIRMATION_CONFIRMED_KEY,
    CONFIRMATION_META_KEY,
    INTERVIEW_META_KEY,
    MilestoneState,
    StatusChecklist,
    current_status_label,
)
from models.document import (
    INTERVIEW_SCREENSHOT_DOCUMENT_TYPE,
    VERIFICATION_IMAGE_DOCUMENT_TYPE,
    StagedFile,
    StoredDocument,
)
from models.errors import (
    ErrorCode,
    PortalError,
    create_requirements_incomplete_error,
    create_validation_error,
)
from models.status import MILESTONE_LABELS, ApplicationType, Milestone
from models.step_details import ConfirmationDetails, InterviewDetails
from utils.checklist_policy import (
    Clock,
    ToggleAction,
    TransitionResult,
    apply_evaluated_completion,
    newly_checked_milestones,
    validate_milestone_toggle,
)
from utils.document_tracker import OPTIONAL_TOTAL, REQUIRED_TOTAL, DocumentRequirementTracker
from utils.file_validation import DEFAULT_MAX_UPLOAD_BYTES, validate_upload_file
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import get_current_utc_timestamp, validate_milestone

logger = logging.getLogger(__name__)


class SaveOutcome(str, Enum):
    SAVED = "saved"
    CONFIRMATION_REQUIRED = "confirmation_required"
    FAILED = "failed"


class GenerateOutcome(str, Enum):
    SKIPPED = "skipped"
    GENERATED = "generated"
    OVERRIDDEN = "overridden"
    KEPT = "kept"
    FAILED = "failed"


class DocumentCounts(NamedTuple):
    required_completed: int = 0
    required_total: int = REQUIRED_TOTAL
    optional_completed: int = 0
    optional_total: int = OPTIONAL_TOTAL

    @property
    def required_complete(self) -> bool:
        return self.required_completed == self.required_total


class ChecklistCoordinator:
    """
    Mediates between the status checklist state machine and the document tracker.

    Usage:
        coordinator = ChecklistCoordinator.for_application("42", gateway, notifier)
        coordinator.open()
        coordinator.toggle_milestone("evaluated", True)   # opens the tracker
        coordinator.tracker.confirm_upload("passport", staged_pdf)
        ...
        coordinator.complete_document_requirements()
        if coordinator.request_save() is SaveOutcome.CONFIRMATION_REQUIRED:
            coordinator.confirm_save()
    """

    def __init__(
        self,
        application_id: str,
        persisted: StatusChecklist,
        gateway: PortalGateway,
        notifier: Notifier,
        clock: Clock = get_current_utc_timestamp,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.application_id = application_id
        self.persisted = persisted
        self.draft = persisted
        self.tracker: Optional[DocumentRequirementTracker] = None
        self.evaluated_pending = False
        self.document_counts = DocumentCounts()
        self.last_error: Optional[PortalError] = None
        self._gateway = gateway
        self._notifier = notifier
        self._clock = clock
        self._max_upload_bytes = max_upload_bytes
        self._awaiting_confirmation = False
        self.generated: List[StoredDocument] = []

    @classmethod
    def for_application(
        cls,
        application_id: str,
        gateway: PortalGateway,
        notifier: Notifier,
        **kwargs,
    ) -> "ChecklistCoordinator":
        """Start a session from the checklist currently stored for the application."""
        application = gateway.get_application(application_id)
        return cls(application.id, application.status_checklist, gateway, notifier, **kwargs)

    def _new_tracker(self) -> DocumentRequirementTracker:
        return DocumentRequirementTracker(
            self.application_id,
            self._gateway,
            self._notifier,
            max_upload_bytes=self._max_upload_bytes,
        )

    def _refresh_counts(self, tracker: DocumentRequirementTracker) -> DocumentCounts:
        required_completed, required_total = tracker.completion()
        optional_completed, optional_total = tracker.optional_completion()
        self.document_counts = DocumentCounts(
            required_completed, required_total, optional_completed, optional_total
        )
        return self.document_counts

    def open(self) -> DocumentCounts:
        """Load document counts for the generate gate; zero counts if the store fails."""
        return self._refresh_counts(self._tracker_loaded())

    def _tracker_loaded(self) -> DocumentRequirementTracker:
        tracker = self._new_tracker()
        tracker.load_existing()
        return tracker

    @property
    def current_status_label(self) -> str:
        return current_status_label(self.draft)

    @property
    def has_pending_changes(self) -> bool:
        return self.draft != self.persisted

    @property
    def pending_milestones(self) -> List[Milestone]:
        return newly_checked_milestones(self.persisted, self.draft)

    def toggle_milestone(self, milestone, checked: bool) -> TransitionResult:
        """
        Request a milestone value in the draft.

        Rejected toggles notify "Cannot uncheck status"; a first check of
        ``evaluated`` opens the document tracker instead of changing the draft.
        """
        milestone = validate_milestone(milestone)
        result = validate_milestone_toggle(
            self.persisted, self.draft, milestone, checked, self._clock
        )

        if result.action == ToggleAction.REJECTED:
            self.last_error = PortalError(ErrorCode.CANNOT_UNCHECK, result.error_message)
            self._notifier.notify(
                "Cannot uncheck status",
                "Once a status is checked, it cannot be unchecked.",
                destructive=True,
            )
        elif result.action == ToggleAction.REQUIRES_DOCUMENTS:
            self.tracker = self._tracker_loaded()
            self._refresh_counts(self.tracker)
            self.evaluated_pending = True
        elif result.action == ToggleAction.APPLIED:
            self.draft = result.checklist
            self._awaiting_confirmation = False
            self.last_error = None
            if milestone == Milestone.EVALUATED:
                self.evaluated_pending = False

        return result

    def complete_document_requirements(self, generate_document: bool = False) -> bool:
        """
        Finish the document flow and mark ``evaluated`` in the draft.

        Args:
            generate_document: Also generate the evaluation requirements
                checklist once the draft is updated

        Returns:
            True if ``evaluated`` is now checked in the draft
        """
        if self.persisted.is_checked(Milestone.EVALUATED):
            return True
        if self.tracker is None:
            self.tracker = self._tracker_loaded()

        finished = self.tracker.finish(self._mark_evaluated)
        self._refresh_counts(self.tracker)
        if not finished:
            self.last_error = self.tracker.last_error
            return False
        if not self.draft.is_checked(Milestone.EVALUATED):
            return False

        if generate_document:
            self.generate_checklist_document()
        return True

    def _mark_evaluated(self) -> None:
        try:
            self._gateway.mark_documents_completed(self.application_id, self._clock())
        except PortalError as e:
            logger.error(
                f"Failed to record completed documents for application {self.application_id}: "
                f"{e.message}"
            )
            self.last_error = e
            self._notifier.notify(
                "Update failed",
                "Could not record the completed documents. Please try again.",
                destructive=True,
            )
            return

        self.draft = apply_evaluated_completion(self.persisted, self.draft, self._clock)
        self.evaluated_pending = False
        self._awaiting_confirmation = False
        self.last_error = None
        self._notifier.notify(
            "Document Requirements Complete",
            "Evaluated status is now available. Click 'Save Changes' to confirm.",
        )

    def request_save(self) -> SaveOutcome:
        """
        Save the draft, asking once for confirmation if it checks new milestones.

        Returns:
            CONFIRMATION_REQUIRED when the irreversible-action warning must be
            acknowledged via ``confirm_save``; otherwise the write outcome
        """
        pending = self.pending_milestones
        if pending and not self._awaiting_confirmation:
            self._awaiting_confirmation = True
            labels = ", ".join(MILESTONE_LABELS[m] for m in pending)
            self._notifier.notify(
                "Confirm status change",
                f"Checking {labels} cannot be undone once saved. Confirm to continue.",
                destructive=True,
            )
            return SaveOutcome.CONFIRMATION_REQUIRED
        if pending:
            # Warning already shown; wait for an explicit confirm or cancel
            return SaveOutcome.CONFIRMATION_REQUIRED
        return self.confirm_save()

    def confirm_save(self) -> SaveOutcome:
        """Write the draft; on success it becomes the persisted snapshot."""
        try:
            application = self._gateway.update_status_checklist(self.application_id, self.draft)
        except PortalError as e:
            logger.error(
                f"Failed to save status checklist for application {self.application_id}: {e.message}"
            )
            self.last_error = e
            self._notifier.notify(
                "Error",
                "Failed to update status checklist. Please try again.",
                destructive=True,
            )
            return SaveOutcome.FAILED

        self.persisted = application.status_checklist
        self.draft = self.persisted
        self._awaiting_confirmation = False
        self.evaluated_pending = False
        self.last_error = None
        self._notifier.notify(
            "Status updated",
            "Application status checklist has been updated successfully",
        )
        return SaveOutcome.SAVED

    def cancel_save(self) -> None:
        """Drop a pending confirmation; the draft is kept for another attempt."""
        self._awaiting_confirmation = False

    def _generate(
        self,
        generate: Callable[[bool], Any],
        confirm_override: bool,
        failure: Tuple[str, str],
    ) -> GenerateOutcome:
        """
        Run a document generation, retrying with override on CONFLICT.

        Success is not notified here; KEPT and FAILED are. The gateway's
        result is kept in ``generated``.
        """
        self.generated = []
        try:
            try:
                result = generate(False)
                outcome = GenerateOutcome.GENERATED
            except PortalError as e:
                if e.code != ErrorCode.CONFLICT:
                    raise
                if not confirm_override:
                    self._notifier.notify("Generation cancelled", "Existing documents were kept.")
                    return GenerateOutcome.KEPT
                result = generate(True)
                outcome = GenerateOutcome.OVERRIDDEN
        except PortalError as e:
            logger.error(
                f"Document generation failed for application {self.application_id}: {e.message}"
            )
            self.last_error = e
            self._notifier.notify(*failure, destructive=True)
            return GenerateOutcome.FAILED

        self.generated = result if isinstance(result, list) else [result]
        self.last_error = None
        return outcome

    def generate_checklist_document(self, confirm_override: bool = True) -> GenerateOutcome:
        """
        Generate the evaluation requirements checklist document.

        Args:
            confirm_override: Replace an existing checklist when the portal
                reports a conflict (otherwise keep it)

        Returns:
            What happened; each outcome is also notified
        """
        if not self.document_counts.required_complete:
            self.last_error = create_requirements_incomplete_error(
                self.document_counts.required_completed, self.document_counts.required_total
            )
            logger.info(
                f"Skipping checklist generation for application {self.application_id}: "
                f"{self.document_counts.required_completed}/{self.document_counts.required_total}"
            )
            return GenerateOutcome.SKIPPED

        outcome = self._generate(
            lambda override: self._gateway.generate_evaluation_checklist(
                self.application_id, override=override
            ),
            confirm_override,
            ("Failed to generate", "Could not generate the documents."),
        )
        if outcome == GenerateOutcome.GENERATED:
            self._notifier.notify("Documents generated", "Evaluation checklist has been attached.")
        elif outcome == GenerateOutcome.OVERRIDDEN:
            self._notifier.notify(
                "Documents overridden", "Existing evaluation checklist was replaced."
            )
        return outcome

    def _refuse_step(self, error: PortalError, title: str) -> GenerateOutcome:
        self.last_error = error
        self._notifier.notify(title, error.message, destructive=True)
        return GenerateOutcome.SKIPPED

    def _save_step(self, checklist: StatusChecklist) -> StatusChecklist:
        """Write a step record straight to the store and adopt it as persisted."""
        application = self._gateway.update_status_checklist(self.application_id, checklist)
        self.persisted = application.status_checklist
        return self.persisted

    def _upload_screenshot(self, document_name: str, file: StagedFile) -> StoredDocument:
        issue = validate_upload_file(file, self._max_upload_bytes)
        if issue is not None:
            raise create_validation_error(issue.description)
        return self._gateway.upload_document(
            self.application_id, ApplicationType.DIRECT_HIRE.value, document_name, file
        )

    def confirm_for_confirmation(
        self,
        given: Optional[Mapping[str, Any]] = None,
        image: Optional[StagedFile] = None,
        mark_confirmed: bool = True,
        confirm_override: bool = True,
    ) -> GenerateOutcome:
        """
        Generate the confirmation document and record who verified the contract.

        Fields in ``given`` win over the stored ``for_confirmation_meta``. A
        verification image is required unless one is already stored; it is
        uploaded before generation. On success the checklist is written with
        the new ``for_confirmation_meta`` and, when ``mark_confirmed``, a
        checked ``for_confirmation_confirmed`` record.

        Returns:
            SKIPPED when details or preconditions are missing (nothing is
            written), otherwise the generation outcome
        """
        stored = self.persisted.extras.get(CONFIRMATION_META_KEY)
        try:
            details = ConfirmationDetails.from_sources(given or {}, stored)
        except ValidationError as e:
            return self._refuse_step(map_pydantic_validation_error(e), "Missing details")

        if mark_confirmed and not self.persisted.is_checked(Milestone.FOR_CONFIRMATION):
            return self._refuse_step(
                create_validation_error("Save For Confirmation before confirming it"),
                "Confirmation unavailable",
            )
        if image is None and details.verification_image_id is None:
            return self._refuse_step(
                create_validation_error("Please attach a verification screenshot."),
                "Verification image required",
            )

        failure = ("Generation failed", "Could not generate the confirmation document.")
        if image is not None:
            try:
                uploaded = self._upload_screenshot(VERIFICATION_IMAGE_DOCUMENT_TYPE, image)
            except PortalError as e:
                self.last_error = e
                self._notifier.notify(*failure, destructive=True)
                return GenerateOutcome.FAILED
            details = details.model_copy(
                update={
                    "verification_image_id": uploaded.id,
                    "verification_image_name": uploaded.file_name,
                }
            )

        outcome = self._generate(
            lambda override: self._gateway.generate_confirmation_document(
                self.application_id, details, override=override
            ),
            confirm_override,
            failure,
        )
        if outcome not in (GenerateOutcome.GENERATED, GenerateOutcome.OVERRIDDEN):
            return outcome

        records: Dict[str, Any] = {CONFIRMATION_META_KEY: details.to_meta()}
        if mark_confirmed:
            records[CONFIRMATION_CONFIRMED_KEY] = {"checked": True, "timestamp": self._clock()}
        try:
            saved = self._save_step(self.persisted.with_extras(records))
        except PortalError as e:
            logger.error(
                f"Failed to record confirmation for application {self.application_id}: {e.message}"
            )
            self.last_error = e
            self._notifier.notify(*failure, destructive=True)
            return GenerateOutcome.FAILED

        self.draft = self.draft.with_extras(saved.extras)
        if mark_confirmed:
            self._notifier.notify(
                "Confirmation completed", "Marked as confirmed and document attached."
            )
        else:
            self._notifier.notify(
                "Confirmation generated",
                "The confirmation document has been attached to the application.",
            )
        return outcome

    def complete_for_interview(
        self,
        given: Optional[Mapping[str, Any]] = None,
        screenshot: Optional[StagedFile] = None,
        mark_status: bool = True,
        confirm_override: bool = True,
    ) -> GenerateOutcome:
        """
        Generate the For Interview documents and save the step.

        Processed-worker counts in ``given`` win over the stored
        ``for_interview_meta``. When ``mark_status`` a screenshot is required
        unless one is stored, and ``for_interview`` is saved as checked
        together with the meta; otherwise the documents are regenerated from
        the stored details only.

        Returns:
            SKIPPED when details are missing (nothing is written), otherwise
            the generation outcome
        """
        stored = self.persisted.extras.get(INTERVIEW_META_KEY)
        try:
            details = InterviewDetails.from_sources(given or {}, stored)
        except ValidationError as e:
            return self._refuse_step(map_pydantic_validation_error(e), "Missing details")

        if mark_status and screenshot is None and details.screenshot_id is None:
            return self._refuse_step(
                create_validation_error("Please attach a screenshot."), "Screenshot required"
            )

        failure = ("Failed to generate", "Could not generate For Interview documents.")
        if mark_status and screenshot is not None:
            try:
                uploaded = self._upload_screenshot(INTERVIEW_SCREENSHOT_DOCUMENT_TYPE, screenshot)
            except PortalError as e:
                self.last_error = e
                self._notifier.notify(*failure, destructive=True)
                return GenerateOutcome.FAILED
            details = details.model_copy(
                update={"screenshot_id": uploaded.id, "screenshot_name": uploaded.file_name}
            )

        outcome = self._generate(
            lambda override: self._gateway.generate_interview_documents(
                self.application_id, details, override=override
            ),
            confirm_override,
            failure,
        )
        if outcome not in (GenerateOutcome.GENERATED, GenerateOutcome.OVERRIDDEN):
            return outcome

        if not mark_status:
            if outcome == GenerateOutcome.OVERRIDDEN:
                self._notifier.notify(
                    "Documents overridden", "Existing For Interview documents were replaced."
                )
            else:
                self._notifier.notify(
                    "Documents generated", "For Interview documents have been attached."
                )
            return outcome

        interview = self.persisted.get(Milestone.FOR_INTERVIEW)
        if not interview.checked:
            interview = MilestoneState(checked=True, timestamp=self._clock())
        checklist = self.persisted.with_entries({Milestone.FOR_INTERVIEW: interview}).with_extras(
            {INTERVIEW_META_KEY: details.to_meta()}
        )
        try:
            saved = self._save_step(checklist)
        except PortalError as e:
            logger.error(
                f"Failed to save For Interview for application {self.application_id}: {e.message}"
            )
            self.last_error = e
            self._notifier.notify(*failure, destructive=True)
            return GenerateOutcome.FAILED

        self.draft = saved
        self._awaiting_confirmation = False
        self._notifier.notify(
            "Documents generated",
            "OEC memorandum and attachments have been attached. Marked as For Interview.",
        )
        return outcome

    def to_dict(self) -> dict:
        return {
            "application_id": self.application_id,
            "persisted": self.persisted.to_payload(),
            "draft": self.draft.to_payload(),
            "current_status": self.current_status_label,
            "pending_milestones": [m.value for m in self.pending_milestones],
            "has_pending_changes": self.has_pending_changes,
            "evaluated_pending": self.evaluated_pending,
            "document_counts": self.document_counts._asdict(),
        }
