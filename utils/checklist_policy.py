"""
Transition policy for the Direct Hire status checklist.

This module enforces the checklist rules on a (persisted snapshot, draft)
pair:
- A milestone checked in the persisted snapshot can never be unchecked
- Checking ``evaluated`` for the first time is gated on document requirements
- Only one not-yet-persisted milestone may be checked per draft; checking a
  new one clears the other pending ones
- Draft-only milestones may be unchecked freely

All functions are pure: they return new checklists and never mutate inputs.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional

from models.checklist import MilestoneState, StatusChecklist, UNCHECKED
from models.errors import create_cannot_uncheck_error
from models.status import MILESTONE_LABELS, MILESTONE_ORDER, ApplicationStatus, Milestone
from utils.validation import get_current_utc_timestamp

Clock = Callable[[], str]


class ToggleAction(str, Enum):
    """Outcome kinds of a milestone toggle."""

    APPLIED = "applied"
    NOOP = "noop"
    REQUIRES_DOCUMENTS = "requires_documents"
    REJECTED = "rejected"


class TransitionResult:
    """Result of a milestone toggle policy check."""

    def __init__(
        self,
        allowed: bool,
        action: ToggleAction,
        checklist: StatusChecklist,
        error_message: Optional[str] = None,
    ):
        """
        Initialize a transition result.

        Args:
            allowed: Whether the toggle was accepted
            action: What the toggle did (or why it did nothing)
            checklist: The resulting draft (unchanged unless action is APPLIED)
            error_message: Reason when the toggle was rejected
        """
        self.allowed = allowed
        self.action = action
        self.checklist = checklist
        self.error_message = error_message

    @property
    def is_noop(self) -> bool:
        return self.action == ToggleAction.NOOP

    def to_dict(self) -> Dict[str, object]:
        result = {"allowed": self.allowed, "action": self.action.value}
        if self.error_message:
            result["error_message"] = self.error_message
        return result


def clear_pending(
    persisted: StatusChecklist, draft: StatusChecklist, keep: Milestone
) -> StatusChecklist:
    """Reset every non-persisted milestone except ``keep`` to unchecked."""
    updates = {
        milestone: UNCHECKED
        for milestone in MILESTONE_ORDER
        if milestone != keep and not persisted.is_checked(milestone)
    }
    return draft.with_entries(updates)


def validate_milestone_toggle(
    persisted: StatusChecklist,
    draft: StatusChecklist,
    milestone: Milestone,
    checked: bool,
    clock: Clock = get_current_utc_timestamp,
) -> TransitionResult:
    """
    Apply a requested milestone value to the draft according to policy.

    Policy rules:
    1. Persisted and requested False -> rejected ("cannot uncheck")
    2. Persisted and requested True -> noop
    3. ``evaluated`` requested True for the first time -> requires_documents
       (the draft is left alone; the caller runs the document flow and later
       calls ``apply_evaluated_completion``)
    4. Requested True on a pending-free milestone -> checked with a fresh
       timestamp, every other non-persisted milestone cleared
    5. Requested True on an already draft-checked milestone -> noop
    6. Requested False on a draft-only milestone -> entry reset

    Args:
        persisted: Last snapshot confirmed written to the store
        draft: Current in-memory checklist
        milestone: Milestone being toggled
        checked: Requested value
        clock: Timestamp source for newly checked milestones

    Returns:
        TransitionResult with the resulting draft

    Examples:
        >>> empty = StatusChecklist()
        >>> validate_milestone_toggle(empty, empty, Milestone.EVALUATED, True).action.value
        'requires_documents'
        >>> result = validate_milestone_toggle(empty, empty, Milestone.FOR_CONFIRMATION, True)
        >>> result.checklist.is_checked(Milestone.FOR_CONFIRMATION)
        True
    """
    milestone = Milestone(milestone)
    was_persisted = persisted.is_checked(milestone)
    is_draft_checked = draft.is_checked(milestone)

    if was_persisted:
        if not checked:
            error = create_cannot_uncheck_error(MILESTONE_LABELS[milestone])
            return TransitionResult(
                allowed=False,
                action=ToggleAction.REJECTED,
                checklist=draft,
                error_message=error.message,
            )
        return TransitionResult(allowed=True, action=ToggleAction.NOOP, checklist=draft)

    if checked:
        if is_draft_checked:
            return TransitionResult(allowed=True, action=ToggleAction.NOOP, checklist=draft)

        if milestone == Milestone.EVALUATED:
            return TransitionResult(
                allowed=True, action=ToggleAction.REQUIRES_DOCUMENTS, checklist=draft
            )

        next_draft = clear_pending(persisted, draft, keep=milestone).with_entries(
            {milestone: MilestoneState(checked=True, timestamp=clock())}
        )
        return TransitionResult(allowed=True, action=ToggleAction.APPLIED, checklist=next_draft)

    if not is_draft_checked:
        return TransitionResult(allowed=True, action=ToggleAction.NOOP, checklist=draft)

    return TransitionResult(
        allowed=True,
        action=ToggleAction.APPLIED,
        checklist=draft.with_entries({milestone: UNCHECKED}),
    )


def apply_evaluated_completion(
    persisted: StatusChecklist,
    draft: StatusChecklist,
    clock: Clock = get_current_utc_timestamp,
) -> StatusChecklist:
    """
    Mark ``evaluated`` checked once document requirements are complete.

    This is the effect of the tracker completion callback: ``evaluated`` gets a
    fresh timestamp and any other pending milestone is cleared.
    """
    return clear_pending(persisted, draft, keep=Milestone.EVALUATED).with_entries(
        {Milestone.EVALUATED: MilestoneState(checked=True, timestamp=clock())}
    )


def newly_checked_milestones(
    persisted: StatusChecklist, draft: StatusChecklist
) -> List[Milestone]:
    """Milestones unchecked in the persisted snapshot but checked in the draft."""
    return [
        milestone
        for milestone in MILESTONE_ORDER
        if draft.is_checked(milestone) and not persisted.is_checked(milestone)
    ]


def status_for_checklist(checklist: StatusChecklist, current: str) -> str:
    """
    Coarse application status implied by a checklist.

    The last checked milestone wins; with nothing checked the current status
    is kept.
    """
    checked = checklist.checked_milestones()
    if not checked:
        return current
    return ApplicationStatus(checked[-1].value).value


def validate_checklist_update(
    previous: StatusChecklist, incoming: StatusChecklist
) -> TransitionResult:
    """
    Store-side guard for a full checklist write.

    Rejects a write that would uncheck any milestone already checked in the
    stored checklist. Timestamps of milestones that stay checked are kept from
    the stored copy so a write cannot rewrite history. Step records missing
    from the incoming checklist are carried over from the stored one.

    Args:
        previous: Checklist currently stored
        incoming: Checklist the caller wants to store

    Returns:
        TransitionResult whose checklist is the value to store
    """
    for milestone in MILESTONE_ORDER:
        if previous.is_checked(milestone) and not incoming.is_checked(milestone):
            error = create_cannot_uncheck_error(MILESTONE_LABELS[milestone])
            return TransitionResult(
                allowed=False,
                action=ToggleAction.REJECTED,
                checklist=previous,
                error_message=error.message,
            )

    preserved = {
        milestone: previous.get(milestone)
        for milestone in MILESTONE_ORDER
        if previous.is_checked(milestone) and previous.get(milestone).timestamp
    }
    carried = {k: v for k, v in previous.extras.items() if k not in incoming.extras}
    if carried:
        incoming = incoming.with_extras(carried)
    merged = incoming.with_entries(preserved)
    action = ToggleAction.NOOP if merged == previous else ToggleAction.APPLIED
    return TransitionResult(allowed=True, action=action, checklist=merged)


def check_checklist_update_or_raise(
    previous: StatusChecklist, incoming: StatusChecklist
) -> StatusChecklist:
    """
    Validate a full checklist write and raise if it unchecks a stored milestone.

    Returns:
        The checklist to store

    Raises:
        PortalError: With CANNOT_UNCHECK code if the write is blocked
    """
    for milestone in MILESTONE_ORDER:
        if previous.is_checked(milestone) and not incoming.is_checked(milestone):
            raise create_cannot_uncheck_error(MILESTONE_LABELS[milestone])
    return validate_checklist_update(previous, incoming).checklist
