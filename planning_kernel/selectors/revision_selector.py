"""
Module: planning_kernel.selectors.revision_selector
Responsibility: Read-only query access to plan revisions, including the
    manager's queue of pending revisions across their reporting line.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only; returns PlanRevision DTOs.
    - The pending queue is ordered oldest request first.
"""

from uuid import UUID

from sqlalchemy import select

from planning_kernel.domain.actor import ReportingLineProvider
from planning_kernel.domain.revision import PlanRevision, RevisionStatus
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.models.plan_revision import PlanRevisionModel
from planning_kernel.selectors.base import BaseSelector


class RevisionSelector(BaseSelector[PlanRevisionModel]):
    """Selector for revision queries."""

    def get(self, revision_id: UUID) -> PlanRevision | None:
        revision = self.session.get(PlanRevisionModel, revision_id)
        return revision.to_dto() if revision is not None else None

    def pending_for_team(
        self,
        manager_id: UUID,
        reporting_line: ReportingLineProvider,
    ) -> list[PlanRevision]:
        """Pending revisions on plans owned by anyone the manager manages."""
        team = reporting_line.team_of(manager_id)
        if not team:
            return []
        revisions = self.session.execute(
            select(PlanRevisionModel)
            .join(BusinessPlanModel, BusinessPlanModel.id == PlanRevisionModel.plan_id)
            .where(
                BusinessPlanModel.owner_id.in_(team),
                PlanRevisionModel.status == RevisionStatus.PENDING.value,
            )
            .order_by(PlanRevisionModel.requested_at, PlanRevisionModel.id)
        ).scalars().all()
        return [r.to_dto() for r in revisions]

    def for_plan(self, plan_id: UUID) -> list[PlanRevision]:
        """Every revision of a plan, any status, oldest first."""
        revisions = self.session.execute(
            select(PlanRevisionModel)
            .where(PlanRevisionModel.plan_id == plan_id)
            .order_by(PlanRevisionModel.requested_at, PlanRevisionModel.id)
        ).scalars().all()
        return [r.to_dto() for r in revisions]
