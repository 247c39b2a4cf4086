"""
Status checklist model for Direct Hire applications.

The checklist is five independently timestamped boolean flags, one per
``Milestone``. Instances are immutable; every transition produces a new
checklist so the persisted snapshot and the in-memory draft never alias.

The stored JSON object also carries step records that are not milestones
(``for_confirmation_confirmed``, ``for_confirmation_meta``,
``for_interview_meta``). They are kept as model extras and written back
unchanged, so saving the milestones never drops them.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from models.status import MILESTONE_LABELS, MILESTONE_ORDER, Milestone


class MilestoneState(BaseModel):
    """State of one milestone: checked flag plus the moment it was first checked."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    checked: bool = False
    timestamp: Optional[str] = None


UNCHECKED = MilestoneState()

CONFIRMATION_CONFIRMED_KEY = "for_confirmation_confirmed"
CONFIRMATION_META_KEY = "for_confirmation_meta"
INTERVIEW_META_KEY = "for_interview_meta"


class StatusChecklist(BaseModel):
    """The five milestone entries owned by a Direct Hire application."""

    model_config = ConfigDict(extra="allow", frozen=True)

    evaluated: MilestoneState = UNCHECKED
    for_confirmation: MilestoneState = UNCHECKED
    emailed_to_dhad: MilestoneState = UNCHECKED
    received_from_dhad: MilestoneState = UNCHECKED
    for_interview: MilestoneState = UNCHECKED

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "StatusChecklist":
        """
        Build a checklist from a stored or transmitted JSON object.

        Missing milestones default to unchecked so rows written before a
        milestone existed still load. Keys that are not milestones are kept
        as extras.
        """
        if not payload:
            return cls()
        milestone_keys = {m.value for m in MILESTONE_ORDER}
        entries: Dict[str, Any] = {
            key: copy.deepcopy(value) for key, value in payload.items() if key not in milestone_keys
        }
        for milestone in MILESTONE_ORDER:
            raw = payload.get(milestone.value)
            if isinstance(raw, Mapping):
                entries[milestone.value] = MilestoneState.model_validate(dict(raw))
        return cls(**entries)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the ``status_checklist`` JSON shape (unset timestamps omitted)."""
        payload: Dict[str, Any] = {
            milestone.value: self.get(milestone).model_dump(exclude_none=True)
            for milestone in MILESTONE_ORDER
        }
        payload.update(self.extras)
        return payload

    @property
    def extras(self) -> Dict[str, Any]:
        """Non-milestone entries, copied."""
        return copy.deepcopy(dict(self.model_extra or {}))

    def get(self, milestone: Milestone) -> MilestoneState:
        return getattr(self, Milestone(milestone).value)

    def is_checked(self, milestone: Milestone) -> bool:
        return self.get(milestone).checked

    def with_entries(self, updates: Mapping[Milestone, MilestoneState]) -> "StatusChecklist":
        """Return a copy with the given milestones replaced."""
        return self.model_copy(
            update={Milestone(key).value: state for key, state in updates.items()}
        )

    def with_extras(self, updates: Mapping[str, Any]) -> "StatusChecklist":
        """Return a copy with the given non-milestone entries set."""
        return self.from_payload({**self.to_payload(), **updates})

    @property
    def confirmation_confirmed(self) -> bool:
        """Whether the For Confirmation document was generated and confirmed."""
        record = (self.model_extra or {}).get(CONFIRMATION_CONFIRMED_KEY)
        return isinstance(record, Mapping) and bool(record.get("checked"))

    def checked_milestones(self) -> List[Milestone]:
        """Checked milestones in display order."""
        return [m for m in MILESTONE_ORDER if self.is_checked(m)]


def current_status_label(checklist: StatusChecklist) -> str:
    """
    Label of the last checked milestone in display order.

    Examples:
        >>> current_status_label(StatusChecklist())
        'No statuses checked'
        >>> current_status_label(
        ...     StatusChecklist(evaluated=MilestoneState(checked=True))
        ... )
        'Evaluated'
    """
    checked = checklist.checked_milestones()
    if not checked:
        return "No statuses checked"
    return MILESTONE_LABELS[checked[-1]]
