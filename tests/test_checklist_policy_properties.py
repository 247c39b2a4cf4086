"""
Property-based tests for the status checklist transition policy.

Tests invariants that must hold for every sequence of milestone toggles.
"""

from hypothesis import given, strategies as st

from models.checklist import MilestoneState, StatusChecklist
from models.status import MILESTONE_ORDER, Milestone
from utils.checklist_policy import (
    ToggleAction,
    apply_evaluated_completion,
    check_checklist_update_or_raise,
    newly_checked_milestones,
    validate_milestone_toggle,
)


def fixed_now():
    return "2025-03-07T10:15:00.000Z"


@st.composite
def checklists(draw):
    """Generate a checklist with an arbitrary set of saved milestones."""
    checked = draw(st.sets(st.sampled_from(MILESTONE_ORDER)))
    return StatusChecklist().with_entries(
        {m: MilestoneState(checked=True, timestamp="2025-01-01T00:00:00.000Z") for m in checked}
    )


toggles = st.lists(st.tuples(st.sampled_from(MILESTONE_ORDER), st.booleans()), max_size=12)


def run_toggles(persisted, steps):
    draft = persisted
    for milestone, checked in steps:
        result = validate_milestone_toggle(persisted, draft, milestone, checked, fixed_now)
        if result.action == ToggleAction.REQUIRES_DOCUMENTS:
            draft = apply_evaluated_completion(persisted, draft, fixed_now)
        else:
            draft = result.checklist
    return draft


class TestTogglePolicyProperties:
    @given(persisted=checklists(), steps=toggles)
    def test_saved_milestones_stay_checked(self, persisted, steps):
        """A draft never unchecks or re-stamps a saved milestone."""
        draft = run_toggles(persisted, steps)

        for milestone in persisted.checked_milestones():
            assert draft.get(milestone) == persisted.get(milestone)

    @given(persisted=checklists(), steps=toggles)
    def test_at_most_one_pending_milestone(self, persisted, steps):
        draft = run_toggles(persisted, steps)
        assert len(newly_checked_milestones(persisted, draft)) <= 1

    @given(persisted=checklists(), steps=toggles)
    def test_draft_passes_store_guard(self, persisted, steps):
        """Every draft the policy produces is accepted by the store-side guard."""
        draft = run_toggles(persisted, steps)
        stored = check_checklist_update_or_raise(persisted, draft)
        assert stored.checked_milestones() == draft.checked_milestones()

    @given(persisted=checklists())
    def test_uncheck_of_saved_is_always_rejected(self, persisted):
        for milestone in persisted.checked_milestones():
            result = validate_milestone_toggle(persisted, persisted, milestone, False, fixed_now)
            assert result.action == ToggleAction.REJECTED
            assert result.allowed is False

    @given(persisted=checklists())
    def test_first_evaluated_check_requires_documents(self, persisted):
        result = validate_milestone_toggle(persisted, persisted, Milestone.EVALUATED, True, fixed_now)
        if persisted.is_checked(Milestone.EVALUATED):
            assert result.action == ToggleAction.NOOP
        else:
            assert result.action == ToggleAction.REQUIRES_DOCUMENTS
            assert result.checklist == persisted
