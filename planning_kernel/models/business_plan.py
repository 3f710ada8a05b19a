"""
Module: planning_kernel.models.business_plan
Responsibility: ORM persistence for producer business plans.  Each row holds
    the plan's identity, lifecycle status and its current input snapshot, one
    column per input.  Derived goals are never stored.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - One active plan per (owner_id, plan_year): partial unique index
      ``uq_business_plans_one_active``.
    - Optimistic concurrency: ``version`` is SQLAlchemy's version_id_col, so
      an UPDATE against a stale version matches zero rows and raises
      StaleDataError.
    - Valid status values via CHECK constraint.

Failure modes:
    - IntegrityError when a second plan for the same owner/year is promoted.
    - StaleDataError when another transaction modified the row first.
    - ImmutabilityViolationError when modifying a revised/archived plan
      (db/immutability.py).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import Base
from planning_kernel.domain.plan import BusinessPlan, PlanStatus
from planning_kernel.domain.plan_inputs import FIELD_NAMES, PlanInputs


class BusinessPlanModel(Base):
    """Persistent business plan."""

    __tablename__ = "business_plans"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'active', 'revised', 'archived')",
            name="ck_business_plans_valid_status",
        ),
        Index(
            "uq_business_plans_one_active",
            "owner_id", "plan_year",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_business_plans_owner_year", "owner_id", "plan_year"),
    )

    owner_id: Mapped[UUID] = mapped_column(nullable=False)
    plan_year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PlanStatus.DRAFT.value,
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    income_goal: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    purchase_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    refinance_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    purchase_percentage: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    avg_loan_amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    pull_through_purchase: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    pull_through_refinance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    conversion_rate_purchase: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    conversion_rate_refinance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    leads_from_partners_percentage: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    leads_per_partner_per_month: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<BusinessPlan {self.id} owner={self.owner_id} "
            f"year={self.plan_year} status={self.status} v{self.version}>"
        )

    @property
    def plan_status(self) -> PlanStatus:
        return PlanStatus(self.status)

    def inputs(self) -> PlanInputs:
        """Current input snapshot, read from the live columns."""
        return PlanInputs.from_mapping(
            {name: getattr(self, name) for name in FIELD_NAMES}
        )

    def apply_inputs(self, inputs: PlanInputs) -> None:
        """Replace the input snapshot wholesale."""
        for name, value in inputs.to_dict().items():
            setattr(self, name, value)

    def to_dto(self) -> BusinessPlan:
        return BusinessPlan(
            id=self.id,
            owner_id=self.owner_id,
            plan_year=self.plan_year,
            inputs=self.inputs(),
            status=self.plan_status,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
        )
