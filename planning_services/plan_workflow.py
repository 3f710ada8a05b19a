"""
PlanWorkflow -- transactional facade for plans, revisions and the audit trail.

Responsibility:
    Exposes the operations the surrounding application calls: draft
    creation, activation, archival, calculated goals, revision requests and
    decisions, and the read queries (team queue, owner/year plans, audit
    history).  Each call runs in exactly one database transaction.

Architecture position:
    Services -- outer layer.  Wires kernel services with the configured
    ValidationPolicy, the injected Clock and the ReportingLineProvider.

Invariants enforced:
    - One transaction per operation: the plan mutation, the revision flip
      and the audit append commit together or roll back together.
    - Lost compare-and-swap races (OptimisticLockError,
      ActivePlanConflictError) are retried in a fresh transaction up to
      ``max_attempts`` times.  Every other error rolls back and propagates
      unchanged.
    - Every operation runs under a fresh correlation id bound into
      LogContext together with the actor.

Failure modes:
    - Any PlanningKernelError raised by the kernel services.
    - The last OptimisticLockError / ActivePlanConflictError once retries
      are exhausted.

Usage:
    workflow = PlanWorkflow.from_config(get_session_factory(), clock=SystemClock())
    plan = workflow.create_draft(producer, 2025, inputs)
    workflow.activate(plan.id, producer)
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Mapping, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from planning_config import PlanningPolicy, get_active_config
from planning_config.bridges import build_validation_policy
from planning_engines.goal_calculator import CalculatedGoals
from planning_kernel.db.engine import session_scope
from planning_kernel.domain.actor import (
    Actor,
    ReportingLineProvider,
    StaticReportingLine,
    can_view,
)
from planning_kernel.domain.audit import AuditEntry
from planning_kernel.domain.clock import Clock, SystemClock
from planning_kernel.domain.plan import BusinessPlan
from planning_kernel.domain.plan_inputs import PlanInputs
from planning_kernel.domain.revision import PlanRevision, RevisionStatus
from planning_kernel.domain.validation import ValidationPolicy
from planning_kernel.exceptions import (
    ActivePlanConflictError,
    OptimisticLockError,
    PlanNotFoundError,
)
from planning_kernel.logging_config import LogContext, get_logger
from planning_kernel.selectors.audit_selector import AuditSelector
from planning_kernel.selectors.plan_selector import PlanSelector
from planning_kernel.selectors.revision_selector import RevisionSelector
from planning_kernel.services.auditor_service import AuditorService
from planning_kernel.services.plan_lifecycle_service import PlanLifecycleService
from planning_kernel.services.revision_service import RevisionService

logger = get_logger("services.workflow")

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    OptimisticLockError,
    ActivePlanConflictError,
)


class PlanWorkflow:
    """Transactional entry point for every planning operation."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        reporting_line: ReportingLineProvider | None = None,
        policy: ValidationPolicy | None = None,
        max_attempts: int = 3,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._reporting_line = reporting_line or StaticReportingLine()
        self._policy = policy or ValidationPolicy.default()
        self._max_attempts = max_attempts

    @classmethod
    def from_config(
        cls,
        session_factory: sessionmaker[Session],
        config: PlanningPolicy | None = None,
        **kwargs: Any,
    ) -> PlanWorkflow:
        """Build a workflow whose validation policy comes from configuration."""
        policy = build_validation_policy(config or get_active_config())
        return cls(session_factory, policy=policy, **kwargs)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _lifecycle(self, session: Session) -> PlanLifecycleService:
        return PlanLifecycleService(
            session, self._clock, self._reporting_line, self._policy,
        )

    def _revisions(self, session: Session) -> RevisionService:
        return RevisionService(
            session, self._clock, self._reporting_line, self._policy,
        )

    def _run(
        self,
        operation: str,
        actor: Actor,
        fn: Callable[[Session], T],
        **context: Any,
    ) -> T:
        """Run ``fn`` in its own transaction, retrying lost races."""
        with LogContext.bind(
            correlation_id=uuid4(), operation=operation, actor_id=actor.id,
            **context,
        ):
            attempt = 1
            while True:
                try:
                    with session_scope(self._session_factory) as session:
                        return fn(session)
                except RETRYABLE_ERRORS as exc:
                    if attempt >= self._max_attempts:
                        logger.error(
                            "workflow_retries_exhausted",
                            extra={
                                "attempts": attempt,
                                "error_code": exc.code,
                            },
                        )
                        raise
                    logger.warning(
                        "workflow_retrying",
                        extra={
                            "attempt": attempt,
                            "error_code": exc.code,
                        },
                    )
                    attempt += 1

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def create_draft(
        self,
        actor: Actor,
        plan_year: int,
        inputs: PlanInputs | Mapping[str, Any],
    ) -> BusinessPlan:
        return self._run(
            "create_draft", actor,
            lambda s: self._lifecycle(s).create_draft(actor, plan_year, inputs),
        )

    def activate(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        return self._run(
            "activate", actor,
            lambda s: self._lifecycle(s).activate(plan_id, actor),
            plan_id=plan_id,
        )

    def archive_draft(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        return self._run(
            "archive_draft", actor,
            lambda s: self._lifecycle(s).archive_draft(plan_id, actor),
            plan_id=plan_id,
        )

    def get_plan(self, plan_id: UUID, actor: Actor) -> BusinessPlan:
        return self._run(
            "get_plan", actor,
            lambda s: self._lifecycle(s).get_plan(plan_id, actor),
            plan_id=plan_id,
        )

    def get_calculated_goals(self, plan_id: UUID, actor: Actor) -> CalculatedGoals:
        """Goals derived from the plan's live inputs at the moment of the call."""
        return self._run(
            "get_calculated_goals", actor,
            lambda s: self._lifecycle(s).calculated_goals(plan_id, actor),
            plan_id=plan_id,
        )

    # ------------------------------------------------------------------
    # Revisions
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
        return self._run(
            "request_revision", actor,
            lambda s: self._revisions(s).request_revision(
                actor, plan_id, field_to_change, requested_value,
                justification, effective_date,
            ),
            plan_id=plan_id,
        )

    def decide(
        self,
        actor: Actor,
        revision_id: UUID,
        decision: RevisionStatus | str,
        decision_notes: str,
    ) -> PlanRevision:
        return self._run(
            "decide", actor,
            lambda s: self._revisions(s).decide(
                actor, revision_id, decision, decision_notes,
            ),
            revision_id=revision_id,
        )

    # ------------------------------------------------------------------
    # Read queries
    # ------------------------------------------------------------------

    def pending_revisions_for_team(self, manager: Actor) -> list[PlanRevision]:
        return self._run(
            "pending_revisions_for_team", manager,
            lambda s: RevisionSelector(s).pending_for_team(
                manager.id, self._reporting_line,
            ),
        )

    def plans_for_owner_year(
        self, actor: Actor, owner_id: UUID, plan_year: int,
    ) -> list[BusinessPlan]:
        """All plans for an owner and year; empty when not visible to ``actor``."""
        if not can_view(actor, owner_id, self._reporting_line):
            return []
        return self._run(
            "plans_for_owner_year", actor,
            lambda s: PlanSelector(s).plans_for_owner_year(owner_id, plan_year),
        )

    def audit_for_plan(self, plan_id: UUID, actor: Actor) -> list[AuditEntry]:
        def query(session: Session) -> list[AuditEntry]:
            plan = PlanSelector(session).get(plan_id)
            if plan is None or not can_view(actor, plan.owner_id, self._reporting_line):
                raise PlanNotFoundError(str(plan_id))
            return AuditSelector(session).for_plan(plan_id)

        return self._run("audit_for_plan", actor, query, plan_id=plan_id)

    def audit_for_owner(self, actor: Actor, owner_id: UUID) -> list[AuditEntry]:
        if not can_view(actor, owner_id, self._reporting_line):
            return []
        return self._run(
            "audit_for_owner", actor,
            lambda s: AuditSelector(s).for_owner(owner_id),
        )

    def validate_audit_chain(self, actor: Actor) -> bool:
        return self._run(
            "validate_audit_chain", actor,
            lambda s: AuditorService(s, self._clock).validate_chain(),
        )
