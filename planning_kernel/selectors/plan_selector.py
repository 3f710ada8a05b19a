"""
Module: planning_kernel.selectors.plan_selector
Responsibility: Read-only query access to business plans.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only; returns BusinessPlan DTOs.
    - Plans for an owner and year come back oldest first so the history of
      drafts, the active plan and superseded plans reads in creation order.
"""

from uuid import UUID

from sqlalchemy import select

from planning_kernel.domain.plan import BusinessPlan, PlanStatus
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.selectors.base import BaseSelector


class PlanSelector(BaseSelector[BusinessPlanModel]):
    """Selector for business plan queries."""

    def get(self, plan_id: UUID) -> BusinessPlan | None:
        plan = self.session.get(BusinessPlanModel, plan_id)
        return plan.to_dto() if plan is not None else None

    def plans_for_owner_year(self, owner_id: UUID, plan_year: int) -> list[BusinessPlan]:
        """All plans (any status) for an owner and year."""
        plans = self.session.execute(
            select(BusinessPlanModel)
            .where(
                BusinessPlanModel.owner_id == owner_id,
                BusinessPlanModel.plan_year == plan_year,
            )
            .order_by(BusinessPlanModel.created_at, BusinessPlanModel.id)
        ).scalars().all()
        return [p.to_dto() for p in plans]

    def active_plan(self, owner_id: UUID, plan_year: int) -> BusinessPlan | None:
        plan = self.session.execute(
            select(BusinessPlanModel).where(
                BusinessPlanModel.owner_id == owner_id,
                BusinessPlanModel.plan_year == plan_year,
                BusinessPlanModel.status == PlanStatus.ACTIVE.value,
            )
        ).scalar_one_or_none()
        return plan.to_dto() if plan is not None else None
