"""
Plan revision domain types (``planning_kernel.domain.revision``).

Responsibility
--------------
Revision lifecycle state machine and the immutable revision snapshot.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``pending`` is the only non-terminal state; ``approved`` and
  ``rejected`` have no outgoing edges.
* A revision changes exactly one plan input field.
* ``current_value`` is the live value captured at request time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class RevisionStatus(str, Enum):
    """Plan revision lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


REVISION_TRANSITIONS: dict[RevisionStatus, frozenset[RevisionStatus]] = {
    RevisionStatus.PENDING: frozenset({
        RevisionStatus.APPROVED,
        RevisionStatus.REJECTED,
    }),
    RevisionStatus.APPROVED: frozenset(),
    RevisionStatus.REJECTED: frozenset(),
}

TERMINAL_REVISION_STATUSES: frozenset[RevisionStatus] = frozenset({
    RevisionStatus.APPROVED,
    RevisionStatus.REJECTED,
})

# Outcomes a manager may choose in decide()
DECISION_STATUSES: frozenset[RevisionStatus] = TERMINAL_REVISION_STATUSES


@dataclass(frozen=True)
class PlanRevision:
    """Immutable snapshot of a revision request and its decision."""

    id: UUID
    plan_id: UUID
    requested_by: UUID
    field_to_change: str
    current_value: Decimal
    requested_value: Decimal
    justification: str
    requested_at: datetime
    status: RevisionStatus
    effective_date: date | None = None
    decided_by: UUID | None = None
    decision_notes: str | None = None
    decided_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == RevisionStatus.PENDING
