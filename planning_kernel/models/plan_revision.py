"""
Module: planning_kernel.models.plan_revision
Responsibility: ORM persistence for single-field revision requests and the
    manager decision recorded against them.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - At most one pending revision per (plan_id, field_to_change): partial
      unique index ``uq_plan_revisions_one_pending_per_field``.
    - Terminal revisions (approved/rejected) are never modified again
      (db/immutability.py).
    - ``version`` guards the pending -> decided flip against a concurrent
      decision.

Failure modes:
    - IntegrityError on a second pending revision for the same field.
    - StaleDataError when two managers decide the same revision at once.
    - ImmutabilityViolationError on UPDATE/DELETE of a decided revision.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import Base
from planning_kernel.domain.revision import PlanRevision, RevisionStatus


class PlanRevisionModel(Base):
    """Persistent revision request."""

    __tablename__ = "plan_revisions"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_plan_revisions_valid_status",
        ),
        Index(
            "uq_plan_revisions_one_pending_per_field",
            "plan_id", "field_to_change",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_plan_revisions_status_requested", "status", "requested_at"),
    )

    plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("business_plans.id"), nullable=False, index=True,
    )
    requested_by: Mapped[UUID] = mapped_column(nullable=False)
    field_to_change: Mapped[str] = mapped_column(String(50), nullable=False)
    current_value: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    requested_value: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    justification: Mapped[str] = mapped_column(Text, nullable=False)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RevisionStatus.PENDING.value,
    )
    decided_by: Mapped[UUID | None] = mapped_column(nullable=True)
    decision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<PlanRevision {self.id} plan={self.plan_id} "
            f"field={self.field_to_change} status={self.status}>"
        )

    @property
    def revision_status(self) -> RevisionStatus:
        return RevisionStatus(self.status)

    def to_dto(self) -> PlanRevision:
        return PlanRevision(
            id=self.id,
            plan_id=self.plan_id,
            requested_by=self.requested_by,
            field_to_change=self.field_to_change,
            current_value=self.current_value,
            requested_value=self.requested_value,
            justification=self.justification,
            requested_at=self.requested_at,
            status=self.revision_status,
            effective_date=self.effective_date,
            decided_by=self.decided_by,
            decision_notes=self.decision_notes,
            decided_at=self.decided_at,
        )
