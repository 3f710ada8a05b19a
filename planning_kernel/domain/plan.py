"""
Business plan domain types (``planning_kernel.domain.plan``).

Responsibility
--------------
Plan lifecycle state machine and the immutable plan snapshot returned to
callers.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``PLAN_TRANSITIONS`` defines the only valid status transitions:
  draft -> active | archived, active -> revised.  ``revised`` and
  ``archived`` are terminal.
* Only ``active`` plans accept approved revisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from planning_kernel.domain.plan_inputs import PlanInputs


class PlanStatus(str, Enum):
    """Business plan lifecycle states."""

    DRAFT = "draft"
    ACTIVE = "active"
    REVISED = "revised"
    ARCHIVED = "archived"


PLAN_TRANSITIONS: dict[PlanStatus, frozenset[PlanStatus]] = {
    PlanStatus.DRAFT: frozenset({PlanStatus.ACTIVE, PlanStatus.ARCHIVED}),
    PlanStatus.ACTIVE: frozenset({PlanStatus.REVISED}),
    PlanStatus.REVISED: frozenset(),
    PlanStatus.ARCHIVED: frozenset(),
}

TERMINAL_PLAN_STATUSES: frozenset[PlanStatus] = frozenset({
    PlanStatus.REVISED,
    PlanStatus.ARCHIVED,
})


def can_transition(from_status: PlanStatus, to_status: PlanStatus) -> bool:
    return to_status in PLAN_TRANSITIONS[from_status]


@dataclass(frozen=True)
class BusinessPlan:
    """Immutable snapshot of a producer's business plan.

    ``version`` increments on every persisted change and doubles as the
    optimistic-concurrency token.
    """

    id: UUID
    owner_id: UUID
    plan_year: int
    inputs: PlanInputs
    status: PlanStatus
    created_at: datetime
    updated_at: datetime | None = None
    version: int = 1

    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.ACTIVE
