"""
PlanLifecycleService -- draft creation, activation and archival of business plans.

Responsibility:
    Creates draft plans from validated inputs, promotes a draft to the single
    active plan for its owner and year (demoting the previous one), archives
    abandoned drafts, and derives calculated goals from a plan's live inputs.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes within the caller's
    transaction; PlanWorkflow owns commit/rollback and retries.

Invariants enforced:
    - At most one active plan per (owner, year).  Activation demotes the
      previous active plan and promotes the target in one transaction.  The
      demotion is flushed first so the partial unique index never sees two
      active rows; if a concurrent activation wins, the index or the version
      check rejects this one.
    - Status changes follow PLAN_TRANSITIONS only.
    - Derived goals are recomputed from the stored inputs on every call and
      never persisted.
    - Only the owner may create, activate or archive a plan.

Failure modes:
    - ValidationError: any input, or the plan year, out of range (all
      offending fields reported).
    - PlanNotFoundError: unknown id, or a plan the caller may not act on.
    - PlanNotDraftError: activating/archiving a plan that is not a draft.
    - ActivePlanConflictError / OptimisticLockError: a concurrent writer won.

Audit relevance:
    Every state change appends one AuditEntry (created, activated, archived)
    in the same transaction as the change itself.
"""

from typing import Any, Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from planning_engines.goal_calculator import CalculatedGoals, calculate
from planning_kernel.domain.actor import (
    Actor,
    ReportingLineProvider,
    StaticReportingLine,
    can_view,
)
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.plan import BusinessPlan, PlanStatus, can_transition
from planning_kernel.domain.plan_inputs import PlanInputs
from planning_kernel.domain.validation import (
    ValidationPolicy,
    collect_input_errors,
    plan_year_error,
)
from planning_kernel.exceptions import (
    ActivePlanConflictError,
    PlanNotDraftError,
    PlanNotFoundError,
    ValidationError,
)
from planning_kernel.logging_config import get_logger
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.services.auditor_service import AuditorService
from planning_kernel.services.base import BaseService

logger = get_logger("services.plan_lifecycle")


class PlanLifecycleService(BaseService[BusinessPlanModel]):
    """
    Service owning the business plan state machine.

    Non-goals:
        - Does NOT apply revisions; see RevisionService.
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

    # ------------------------------------------------------------------
    # Loading and access
    # ------------------------------------------------------------------

    def _load(self, plan_id: UUID, for_update: bool = False) -> BusinessPlanModel:
        stmt = select(BusinessPlanModel).where(BusinessPlanModel.id == plan_id)
        if for_update:
            stmt = stmt.with_for_update()
        plan = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if plan is None:
            raise PlanNotFoundError(str(plan_id))
        return plan

    def _load_owned(self, plan_id: UUID, actor: Actor) -> BusinessPlanModel:
        plan = self._load(plan_id, for_update=True)
        if plan.owner_id != actor.id:
            logger.warning(
                "plan_write_denied",
                extra={"plan_id": str(plan_id), "actor_id": str(actor.id)},
            )
            raise PlanNotFoundError(str(plan_id))
        return plan

    def _load_visible(self, plan_id: UUID, actor: Actor) -> BusinessPlanModel:
        plan = self._load(plan_id)
        if not can_view(actor, plan.owner_id, self._reporting_line):
            raise PlanNotFoundError(str(plan_id))
        return plan

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_draft(
        self,
        actor: Actor,
        plan_year: int,
        inputs: PlanInputs | Mapping[str, Any],
    ) -> BusinessPlan:
        """
        Validate inputs and create a new draft plan owned by ``actor``.

        Raises:
            ValidationError: listing every out-of-range input and the plan
                year if it falls outside the accepted window.
        """
        errors: list[dict[str, Any]] = []
        parsed: PlanInputs | None = None
        if isinstance(inputs, PlanInputs):
            parsed = inputs
        else:
            try:
                parsed = PlanInputs.from_mapping(inputs)
            except ValidationError as exc:
                errors.extend(exc.field_errors)
        if parsed is not None:
            errors.extend(collect_input_errors(parsed, self._policy))
        year_error = plan_year_error(plan_year, self._clock.current_year(), self._policy)
        if year_error is not None:
            errors.append(year_error)
        if errors:
            logger.info(
                "plan_draft_rejected",
                extra={"owner_id": str(actor.id), "fields": [e["field"] for e in errors]},
            )
            raise ValidationError(errors)

        now = self._clock.now()
        plan = BusinessPlanModel(
            owner_id=actor.id,
            plan_year=plan_year,
            status=PlanStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        plan.apply_inputs(parsed)
        self.session.add(plan)
        self.session.flush()

        self._auditor.record_plan_created(plan, actor.id)
        logger.info(
            "plan_draft_created",
            extra={
                "plan_id": str(plan.id),
                "owner_id": str(actor.id),
                "plan_year": plan_year,
            },
        )
        return plan.to_dto()

    def activate(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        """
        Promote a draft to the owner's active plan for its year.

        Any plan currently active for the same owner and year is demoted to
        ``revised`` in the same transaction.

        Raises:
            PlanNotFoundError: unknown plan or caller is not the owner.
            PlanNotDraftError: plan is not in draft.
            ActivePlanConflictError: a concurrent activation won the race.
            OptimisticLockError: a concurrent writer changed either plan.
        """
        plan = self._load_owned(plan_id, actor)
        if not can_transition(plan.plan_status, PlanStatus.ACTIVE):
            raise PlanNotDraftError(str(plan.id), plan.status, PlanStatus.ACTIVE.value)

        current = self.session.execute(
            select(BusinessPlanModel)
            .where(
                BusinessPlanModel.owner_id == plan.owner_id,
                BusinessPlanModel.plan_year == plan.plan_year,
                BusinessPlanModel.status == PlanStatus.ACTIVE.value,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        now = self._clock.now()
        demoted_id: UUID | None = None
        try:
            if current is not None:
                current.status = PlanStatus.REVISED.value
                current.updated_at = now
                self._flush("BusinessPlan", current.id)
                demoted_id = current.id

            plan.status = PlanStatus.ACTIVE.value
            plan.updated_at = now
            self._flush("BusinessPlan", plan.id)
        except IntegrityError as exc:
            logger.warning(
                "plan_activation_conflict",
                extra={"plan_id": str(plan.id), "plan_year": plan.plan_year},
            )
            raise ActivePlanConflictError(str(plan.owner_id), plan.plan_year) from exc

        self._auditor.record_plan_activated(plan, actor.id, demoted_id)
        logger.info(
            "plan_activated",
            extra={
                "plan_id": str(plan.id),
                "plan_year": plan.plan_year,
                "demoted_plan_id": str(demoted_id) if demoted_id else None,
            },
        )
        return plan.to_dto()

    def archive_draft(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        """Abandon a draft plan (draft -> archived)."""
        plan = self._load_owned(plan_id, actor)
        if not can_transition(plan.plan_status, PlanStatus.ARCHIVED):
            raise PlanNotDraftError(str(plan.id), plan.status, PlanStatus.ARCHIVED.value)

        plan.status = PlanStatus.ARCHIVED.value
        plan.updated_at = self._clock.now()
        self._flush("BusinessPlan", plan.id)

        self._auditor.record_plan_archived(plan, actor.id)
        logger.info("plan_archived", extra={"plan_id": str(plan.id)})
        return plan.to_dto()

    def calculated_goals(self, plan_id: UUID, actor: Actor) -> CalculatedGoals:
        """Derive goals from the plan's live inputs. Never cached."""
        plan = self._load_visible(plan_id, actor)
        return calculate(plan.inputs())

    def get_plan(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        return self._load_visible(plan_id, actor).to_dto()
