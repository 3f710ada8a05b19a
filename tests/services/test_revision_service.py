"""
Tests for RevisionService.

Verifies:
- Revision requests capture the live value and are audited
- Request validation reports every problem and writes nothing
- One pending revision per (plan, field)
- Manager decisions: approve applies the value, reject leaves the plan alone
- Only the owner's manager decides, exactly once
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from planning_kernel.domain.revision import RevisionStatus
from planning_kernel.exceptions import (
    DuplicatePendingRevisionError,
    PlanNotActiveError,
    PlanNotFoundError,
    RevisionAlreadyDecidedError,
    RevisionNotFoundError,
    ValidationError,
)
from planning_kernel.models.audit_entry import AuditEntryModel
from planning_kernel.models.plan_revision import PlanRevisionModel
from planning_kernel.selectors.audit_selector import AuditSelector
from planning_kernel.selectors.plan_selector import PlanSelector
from planning_kernel.selectors.revision_selector import RevisionSelector


def _count(session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def request_income_change(revision_service, active_plan, producer, justification, deterministic_clock):
    """Request income_goal 250000 -> 300000 on the active plan."""

    def _request(value=Decimal("300000"), field="income_goal"):
        revision = revision_service.request_revision(
            producer, active_plan.id, field, value, justification,
        )
        deterministic_clock.tick()
        return revision

    return _request


class TestRequestRevision:

    def test_records_pending_revision(self, request_income_change, active_plan, producer, justification):
        revision = request_income_change()

        assert revision.status == RevisionStatus.PENDING
        assert revision.plan_id == active_plan.id
        assert revision.is_pending
        assert revision.requested_by == producer.id
        assert revision.field_to_change == "income_goal"
        assert revision.current_value == Decimal("250000")
        assert revision.requested_value == Decimal("300000")
        assert revision.justification == justification
        assert revision.decided_by is None

    def test_audited_as_revised(self, request_income_change, active_plan, session):
        revision = request_income_change()

        entry = AuditSelector(session).for_plan(active_plan.id)[-1]
        assert entry.action.value == "revised"
        assert entry.revision_id == revision.id
        assert entry.details == "Revision requested: Income Goal: $250,000 → $300,000"
        assert entry.justification == revision.justification

    def test_camel_case_field(self, revision_service, active_plan, producer, justification):
        revision = revision_service.request_revision(
            producer, active_plan.id, "pullThroughPurchase", 0.6, justification,
        )
        assert revision.field_to_change == "pull_through_purchase"
        assert revision.requested_value == Decimal("0.6")

    def test_justification_stripped(self, revision_service, active_plan, producer, justification):
        revision = revision_service.request_revision(
            producer, active_plan.id, "income_goal", 300000, f"  {justification}\n",
        )
        assert revision.justification == justification

    def test_plan_not_changed_by_request(self, request_income_change, active_plan, session):
        request_income_change()
        plan = PlanSelector(session).get(active_plan.id)
        assert plan.inputs.income_goal == Decimal("250000")

    @pytest.mark.parametrize("text", ["", "Too short to explain anything."])
    def test_bad_justification_writes_nothing(
        self, revision_service, active_plan, producer, session, text,
    ):
        audit_before = _count(session, AuditEntryModel)
        with pytest.raises(ValidationError) as exc_info:
            revision_service.request_revision(
                producer, active_plan.id, "income_goal", 300000, text,
            )
        assert exc_info.value.fields == ("justification",)
        assert _count(session, PlanRevisionModel) == 0
        assert _count(session, AuditEntryModel) == audit_before

    def test_value_and_justification_reported_together(
        self, revision_service, active_plan, producer,
    ):
        with pytest.raises(ValidationError) as exc_info:
            revision_service.request_revision(
                producer, active_plan.id, "conversion_rate_purchase", 1.5, "",
            )
        assert exc_info.value.fields == ("requested_value", "justification")

    def test_non_numeric_value(self, revision_service, active_plan, producer, justification):
        with pytest.raises(ValidationError) as exc_info:
            revision_service.request_revision(
                producer, active_plan.id, "income_goal", "more", justification,
            )
        assert exc_info.value.fields == ("requested_value",)

    def test_unknown_field(self, revision_service, active_plan, producer, justification):
        with pytest.raises(ValidationError) as exc_info:
            revision_service.request_revision(
                producer, active_plan.id, "bonus", 1, justification,
            )
        assert exc_info.value.fields == ("field_to_change",)

    def test_draft_plan_rejected(self, revision_service, create_draft, producer, justification):
        draft = create_draft()
        with pytest.raises(PlanNotActiveError):
            revision_service.request_revision(
                producer, draft.id, "income_goal", 300000, justification,
            )

    def test_non_owner_rejected(self, revision_service, active_plan, other_producer, justification):
        with pytest.raises(PlanNotFoundError):
            revision_service.request_revision(
                other_producer, active_plan.id, "income_goal", 300000, justification,
            )

    def test_unknown_plan(self, revision_service, producer, justification):
        with pytest.raises(PlanNotFoundError):
            revision_service.request_revision(
                producer, uuid4(), "income_goal", 300000, justification,
            )

    def test_duplicate_pending_for_field(self, request_income_change):
        first = request_income_change()
        with pytest.raises(DuplicatePendingRevisionError) as exc_info:
            request_income_change(Decimal("275000"))
        assert exc_info.value.existing_revision_id == str(first.id)

    def test_different_fields_may_be_pending(self, request_income_change):
        request_income_change()
        other = request_income_change(Decimal("450000"), field="avg_loan_amount")
        assert other.status == RevisionStatus.PENDING


class TestDecide:

    def test_approve_applies_value(
        self, request_income_change, revision_service, manager, decision_notes, session, active_plan,
    ):
        revision = request_income_change()
        decided = revision_service.decide(manager, revision.id, "approved", decision_notes)

        assert decided.status == RevisionStatus.APPROVED
        assert decided.decided_by == manager.id
        assert decided.decision_notes == decision_notes
        assert decided.decided_at is not None

        plan = PlanSelector(session).get(active_plan.id)
        assert plan.inputs.income_goal == Decimal("300000")
        assert plan.inputs.purchase_bps == 200

    def test_approve_audited_with_both_values(
        self, request_income_change, revision_service, manager, decision_notes, session, active_plan,
    ):
        revision = request_income_change()
        revision_service.decide(manager, revision.id, RevisionStatus.APPROVED, decision_notes)

        entry = AuditSelector(session).for_plan(active_plan.id)[-1]
        assert entry.action.value == "approved"
        assert entry.actor_id == manager.id
        assert entry.decision_notes == decision_notes
        assert entry.details == "Revision approved: Income Goal: $250,000 → $300,000"
        assert entry.field_changes == {
            "field": "income_goal",
            "requested_against": "250000",
            "previous_value": "250000",
            "new_value": "300000",
        }

    def test_approve_recomputes_goals(
        self, request_income_change, revision_service, lifecycle_service,
        manager, producer, decision_notes, active_plan,
    ):
        revision = request_income_change()
        revision_service.decide(manager, revision.id, "approved", decision_notes)
        goals = lifecycle_service.calculated_goals(active_plan.id, producer)
        assert goals.annual_units_goal == 39

    def test_reject_leaves_plan(
        self, request_income_change, revision_service, manager, decision_notes, session, active_plan,
    ):
        revision = request_income_change()
        decided = revision_service.decide(manager, revision.id, "rejected", decision_notes)

        assert decided.status == RevisionStatus.REJECTED
        assert PlanSelector(session).get(active_plan.id).inputs.income_goal == Decimal("250000")
        assert AuditSelector(session).for_plan(active_plan.id)[-1].action.value == "rejected"

    def test_decided_field_can_be_requested_again(
        self, request_income_change, revision_service, manager, decision_notes,
    ):
        revision = request_income_change()
        revision_service.decide(manager, revision.id, "rejected", decision_notes)
        assert request_income_change(Decimal("275000")).status == RevisionStatus.PENDING

    def test_cannot_decide_twice(
        self, request_income_change, revision_service, manager, decision_notes, active_plan, session,
    ):
        first = request_income_change()
        revision_service.decide(manager, first.id, "approved", decision_notes)
        second = request_income_change(Decimal("275000"))
        before = PlanSelector(session).get(active_plan.id)

        with pytest.raises(RevisionAlreadyDecidedError) as exc_info:
            revision_service.decide(manager, first.id, "approved", decision_notes)

        assert exc_info.value.status == "approved"
        after = PlanSelector(session).get(active_plan.id)
        assert after.version == before.version
        assert after.inputs.income_goal == Decimal("300000")
        assert RevisionSelector(session).get(second.id).status == RevisionStatus.PENDING
        actions = sorted(
            entry.action.value
            for entry in AuditSelector(session).for_plan(active_plan.id)
            if entry.revision_id == first.id
        )
        assert actions == ["approved", "revised"]

    def test_short_notes_rejected(self, request_income_change, revision_service, manager, justification):
        revision = request_income_change()
        with pytest.raises(ValidationError) as exc_info:
            revision_service.decide(manager, revision.id, "approved", justification)
        assert exc_info.value.fields == ("decision_notes",)

    @pytest.mark.parametrize("decision", ["pending", "maybe", ""])
    def test_unknown_decision(self, request_income_change, revision_service, manager, decision_notes, decision):
        revision = request_income_change()
        with pytest.raises(ValidationError) as exc_info:
            revision_service.decide(manager, revision.id, decision, decision_notes)
        assert exc_info.value.fields == ("decision",)

    def test_producer_cannot_decide_own(self, request_income_change, revision_service, producer, decision_notes):
        revision = request_income_change()
        with pytest.raises(RevisionNotFoundError):
            revision_service.decide(producer, revision.id, "approved", decision_notes)

    def test_other_manager_cannot_decide(
        self, request_income_change, revision_service, other_manager, decision_notes,
    ):
        revision = request_income_change()
        with pytest.raises(RevisionNotFoundError):
            revision_service.decide(other_manager, revision.id, "approved", decision_notes)

    def test_unknown_revision(self, revision_service, manager, decision_notes):
        with pytest.raises(RevisionNotFoundError):
            revision_service.decide(manager, uuid4(), "approved", decision_notes)

    def test_approve_into_superseded_plan(
        self, request_income_change, revision_service, lifecycle_service, create_draft,
        manager, producer, decision_notes,
    ):
        revision = request_income_change()
        replacement = create_draft()
        lifecycle_service.activate(replacement.id, producer)

        with pytest.raises(PlanNotActiveError):
            revision_service.decide(manager, revision.id, "approved", decision_notes)

    def test_reject_on_superseded_plan(
        self, request_income_change, revision_service, lifecycle_service, create_draft,
        manager, producer, decision_notes,
    ):
        revision = request_income_change()
        replacement = create_draft()
        lifecycle_service.activate(replacement.id, producer)

        decided = revision_service.decide(manager, revision.id, "rejected", decision_notes)
        assert decided.status == RevisionStatus.REJECTED
