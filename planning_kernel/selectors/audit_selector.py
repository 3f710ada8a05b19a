"""
Module: planning_kernel.selectors.audit_selector
Responsibility: Read-only access to the plan audit trail.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Entries are returned in ``seq`` order, which is also timestamp order
      because sequence numbers are allocated inside the writing transaction.
    - Read-only; returns AuditEntry DTOs.

Audit relevance:
    This is the only place outside a plan where the historical value of an
    input is recoverable.
"""

from uuid import UUID

from sqlalchemy import select

from planning_kernel.domain.audit import AuditEntry
from planning_kernel.models.audit_entry import AuditEntryModel
from planning_kernel.selectors.base import BaseSelector


class AuditSelector(BaseSelector[AuditEntryModel]):
    """Selector for audit trail queries."""

    def for_plan(self, plan_id: UUID) -> list[AuditEntry]:
        entries = self.session.execute(
            select(AuditEntryModel)
            .where(AuditEntryModel.plan_id == plan_id)
            .order_by(AuditEntryModel.seq)
        ).scalars().all()
        return [e.to_dto() for e in entries]

    def for_owner(self, owner_id: UUID) -> list[AuditEntry]:
        """Every entry on any plan the owner holds."""
        entries = self.session.execute(
            select(AuditEntryModel)
            .where(AuditEntryModel.owner_id == owner_id)
            .order_by(AuditEntryModel.seq)
        ).scalars().all()
        return [e.to_dto() for e in entries]
