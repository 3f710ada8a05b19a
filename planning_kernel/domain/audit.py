"""
Audit trail domain types (``planning_kernel.domain.audit``).

Immutable audit entry snapshot plus the action vocabulary.  Entries are
append-only; ``seq`` orders them and ``hash``/``prev_hash`` chain them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class AuditAction(str, Enum):
    """Actions recorded in the plan audit trail."""

    CREATED = "created"
    REVISED = "revised"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVATED = "activated"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class AuditEntry:
    """One append-only record of who changed what and why."""

    id: UUID
    seq: int
    plan_id: UUID
    owner_id: UUID
    action: AuditAction
    actor_id: UUID
    timestamp: datetime
    details: str
    justification: str | None = None
    decision_notes: str | None = None
    revision_id: UUID | None = None
    field_changes: dict[str, Any] = field(default_factory=dict)
    payload_hash: str = ""
    prev_hash: str | None = None
    hash: str = ""
