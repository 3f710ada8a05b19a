"""Tests for the plan and revision status tables."""

import pytest

from planning_kernel.domain.plan import (
    PLAN_TRANSITIONS,
    TERMINAL_PLAN_STATUSES,
    PlanStatus,
    can_transition,
)
from planning_kernel.domain.revision import (
    DECISION_STATUSES,
    REVISION_TRANSITIONS,
    TERMINAL_REVISION_STATUSES,
    RevisionStatus,
)


class TestPlanTransitions:

    @pytest.mark.parametrize(
        "source, target",
        [
            (PlanStatus.DRAFT, PlanStatus.ACTIVE),
            (PlanStatus.DRAFT, PlanStatus.ARCHIVED),
            (PlanStatus.ACTIVE, PlanStatus.REVISED),
        ],
    )
    def test_allowed(self, source, target):
        assert can_transition(source, target)

    @pytest.mark.parametrize(
        "source, target",
        [
            (PlanStatus.ACTIVE, PlanStatus.ACTIVE),
            (PlanStatus.ACTIVE, PlanStatus.ARCHIVED),
            (PlanStatus.ACTIVE, PlanStatus.DRAFT),
            (PlanStatus.REVISED, PlanStatus.ACTIVE),
            (PlanStatus.ARCHIVED, PlanStatus.DRAFT),
        ],
    )
    def test_rejected(self, source, target):
        assert not can_transition(source, target)

    def test_terminal_states_have_no_exits(self):
        for status in TERMINAL_PLAN_STATUSES:
            assert PLAN_TRANSITIONS[status] == frozenset()

    def test_every_status_in_table(self):
        assert set(PLAN_TRANSITIONS) == set(PlanStatus)


class TestRevisionTransitions:

    def test_pending_decides_once(self):
        assert REVISION_TRANSITIONS[RevisionStatus.PENDING] == DECISION_STATUSES
        for status in TERMINAL_REVISION_STATUSES:
            assert REVISION_TRANSITIONS[status] == frozenset()

    def test_statuses_are_strings(self):
        assert RevisionStatus("approved") is RevisionStatus.APPROVED
        assert PlanStatus.ACTIVE == "active"
