"""
RevisionService -- single-field revision requests and manager decisions.

Responsibility:
    Records a producer's proposal to change one input of an active plan,
    and applies or discards it when an authorized manager decides.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes within the caller's
    transaction; PlanWorkflow owns commit/rollback and retries.

Invariants enforced:
    - At most one pending revision per (plan, field).  The pre-insert check
      reports the existing revision; the partial unique index catches the
      race between two requests that both passed the check.
    - ``current_value`` is read from the live plan at request time.
    - ``decide`` re-checks ``pending`` under a row lock immediately before
      applying, and the revision's version column rejects a concurrent
      decision that slipped past the lock.
    - On approval the input replacement, the revision flip and the audit
      append share one transaction.
    - A producer never decides their own revision.

Failure modes:
    - ValidationError: unknown field, out-of-range requested value,
      justification or decision notes outside the text policy, or an
      unknown decision.
    - PlanNotFoundError / RevisionNotFoundError: unknown id or not visible.
    - PlanNotActiveError: requesting against, or approving into, a plan that
      is no longer active.
    - RevisionAlreadyDecidedError: deciding a revision that is not pending.
    - DuplicatePendingRevisionError: another pending revision targets the
      same field.
    - OptimisticLockError: a concurrent writer won; retryable.

Audit relevance:
    Requests are audited as ``revised``; decisions as ``approved`` or
    ``rejected``.  The approved entry records both the value the request was
    made against and the value actually replaced.
"""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from planning_kernel.domain.actor import (
    Actor,
    ReportingLineProvider,
    StaticReportingLine,
    can_decide,
)
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.plan import PlanStatus
from planning_kernel.domain.plan_inputs import coerce_field_value, normalize_field_name
from planning_kernel.domain.revision import DECISION_STATUSES, PlanRevision, RevisionStatus
from planning_kernel.domain.validation import (
    ValidationPolicy,
    decision_notes_error,
    justification_error,
    requested_value_error,
    validate_plan_inputs,
)
from planning_kernel.exceptions import (
    DuplicatePendingRevisionError,
    OptimisticLockError,
    PlanNotActiveError,
    PlanNotFoundError,
    RevisionAlreadyDecidedError,
    RevisionNotFoundError,
    ValidationError,
)
from planning_kernel.logging_config import get_logger
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.models.plan_revision import PlanRevisionModel
from planning_kernel.services.auditor_service import AuditorService
from planning_kernel.services.base import BaseService

logger = get_logger("services.revision")


class RevisionService(BaseService[PlanRevisionModel]):
    """
    Service owning the revision state machine.

    Non-goals:
        - Does NOT create or activate plans; see PlanLifecycleService.
        - Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        reporting_line: ReportingLineProvider | None = None,
        policy: ValidationPolicy | None = None,
        auditor: AuditorService | None = None,
    ):
        super().__init__(session, clock)
        self._reporting_line = reporting_line or StaticReportingLine()
        self._policy = policy or ValidationPolicy.default()
        self._auditor = auditor or AuditorService(session, self._clock)

    def _lock_plan(self, plan_id: UUID) -> BusinessPlanModel:
        plan = self.session.execute(
            select(BusinessPlanModel)
            .where(BusinessPlanModel.id == plan_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if plan is None:
            raise PlanNotFoundError(str(plan_id))
        return plan

    def _lock_revision(self, revision_id: UUID) -> PlanRevisionModel:
        revision = self.session.execute(
            select(PlanRevisionModel)
            .where(PlanRevisionModel.id == revision_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if revision is None:
            raise RevisionNotFoundError(str(revision_id))
        return revision

    def _pending_for_field(self, plan_id: UUID, field: str) -> PlanRevisionModel | None:
        return self.session.execute(
            select(PlanRevisionModel).where(
                PlanRevisionModel.plan_id == plan_id,
                PlanRevisionModel.field_to_change == field,
                PlanRevisionModel.status == RevisionStatus.PENDING.value,
            )
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    def request_revision(
        self,
        actor: Actor,
        plan_id: UUID,
        field_to_change: str,
        requested_value: Any,
        justification: str,
        effective_date: date | None = None,
    ) -> PlanRevision:
        """
        Propose a new value for one input of the actor's active plan.

        Every input problem (field, value, justification) is reported in a
        single ValidationError before the plan is read.  Nothing is written
        when validation fails.
        """
        field = normalize_field_name(field_to_change)

        errors: list[dict[str, Any]] = []
        try:
            value = coerce_field_value(field, requested_value)
        except ValidationError as exc:
            errors.extend(
                {**e, "field": "requested_value"} for e in exc.field_errors
            )
        else:
            bound_error = requested_value_error(field, value, self._policy)
            if bound_error is not None:
                errors.append(bound_error)
        text_problem = justification_error(justification, self._policy)
        if text_problem is not None:
            errors.append(text_problem)
        if errors:
            logger.info(
                "revision_request_rejected",
                extra={"plan_id": str(plan_id), "fields": [e["field"] for e in errors]},
            )
            raise ValidationError(errors)

        plan = self._lock_plan(plan_id)
        if plan.owner_id != actor.id:
            raise PlanNotFoundError(str(plan_id))
        if plan.plan_status != PlanStatus.ACTIVE:
            raise PlanNotActiveError(str(plan.id), plan.status)

        existing = self._pending_for_field(plan.id, field)
        if existing is not None:
            raise DuplicatePendingRevisionError(str(plan.id), field, str(existing.id))

        revision = PlanRevisionModel(
            plan_id=plan.id,
            requested_by=actor.id,
            field_to_change=field,
            current_value=getattr(plan, field),
            requested_value=value,
            justification=justification.strip(),
            effective_date=effective_date,
            requested_at=self._clock.now(),
            status=RevisionStatus.PENDING.value,
        )
        self.session.add(revision)
        try:
            self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "pending_revision_race",
                extra={"plan_id": str(plan.id), "field_to_change": field},
            )
            raise OptimisticLockError("PlanRevision", f"{plan.id}:{field}") from exc

        self._auditor.record_revision_requested(plan, revision, actor.id)
        logger.info(
            "revision_requested",
            extra={
                "plan_id": str(plan.id),
                "revision_id": str(revision.id),
                "field_to_change": field,
            },
        )
        return revision.to_dto()

    # ------------------------------------------------------------------
    # Decide
    # ------------------------------------------------------------------

    def decide(
        self,
        actor: Actor,
        revision_id: UUID,
        decision: RevisionStatus | str,
        decision_notes: str,
    ) -> PlanRevision:
        """
        Approve or reject a pending revision.

        On approval the named input is replaced with the requested value,
        the full input set is re-validated, and the revision, the plan and
        the audit entry are flushed together.
        """
        errors: list[dict[str, Any]] = []
        outcome: RevisionStatus | None = None
        try:
            outcome = RevisionStatus(decision)
        except ValueError:
            pass
        if outcome not in DECISION_STATUSES:
            errors.append({
                "field": "decision",
                "value": decision,
                "message": "Must be 'approved' or 'rejected'",
            })
        notes_problem = decision_notes_error(decision_notes, self._policy)
        if notes_problem is not None:
            errors.append(notes_problem)
        if errors:
            raise ValidationError(errors)

        revision = self._lock_revision(revision_id)
        plan = self._lock_plan(revision.plan_id)
        if not can_decide(actor, plan.owner_id, self._reporting_line):
            logger.warning(
                "revision_decision_denied",
                extra={"revision_id": str(revision_id), "actor_id": str(actor.id)},
            )
            raise RevisionNotFoundError(str(revision_id))
        if revision.revision_status != RevisionStatus.PENDING:
            raise RevisionAlreadyDecidedError(str(revision.id), revision.status)

        now = self._clock.now()
        notes = decision_notes.strip()

        if outcome == RevisionStatus.APPROVED:
            if plan.plan_status != PlanStatus.ACTIVE:
                raise PlanNotActiveError(str(plan.id), plan.status)
            field = revision.field_to_change
            current_inputs = plan.inputs()
            previous_value = current_inputs.get(field)
            updated = current_inputs.replace(field, revision.requested_value)
            validate_plan_inputs(updated, self._policy)

            plan.apply_inputs(updated)
            plan.updated_at = now
            self._flush("BusinessPlan", plan.id)
            new_value = updated.get(field)
        else:
            previous_value = new_value = None

        revision.status = outcome.value
        revision.decided_by = actor.id
        revision.decided_at = now
        revision.decision_notes = notes
        self._flush("PlanRevision", revision.id)

        if outcome == RevisionStatus.APPROVED:
            self._auditor.record_revision_approved(
                plan, revision, actor.id, previous_value, new_value,
            )
        else:
            self._auditor.record_revision_rejected(plan, revision, actor.id)

        logger.info(
            "revision_decided",
            extra={
                "revision_id": str(revision.id),
                "plan_id": str(plan.id),
                "decision": outcome.value,
            },
        )
        return revision.to_dto()
