"""
Module: planning_kernel.models.audit_entry
Responsibility: ORM persistence for the tamper-evident plan audit trail.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - Entries are append-only; no UPDATE or DELETE (db/immutability.py).
    - Hash chain integrity: hash = H(plan_id | seq | action | payload_hash |
      prev_hash).  Validated by AuditorService.validate_chain().
    - seq is strictly increasing, allocated by SequenceService.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
    - AuditChainBrokenError when chain validation detects a hash mismatch.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from planning_kernel.db.base import Base
from planning_kernel.domain.audit import AuditAction, AuditEntry


class AuditEntryModel(Base):
    """Persistent audit entry in the hash chain."""

    __tablename__ = "plan_audit_entries"

    __table_args__ = (
        Index("ix_plan_audit_entries_plan_seq", "plan_id", "seq"),
        Index("ix_plan_audit_entries_owner_seq", "owner_id", "seq"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("business_plans.id"), nullable=False,
    )
    owner_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    decision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision_id: Mapped[UUID | None] = mapped_column(nullable=True)
    field_changes: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEntry seq={self.seq} plan={self.plan_id} action={self.action}>"

    def to_dto(self) -> AuditEntry:
        return AuditEntry(
            id=self.id,
            seq=self.seq,
            plan_id=self.plan_id,
            owner_id=self.owner_id,
            action=AuditAction(self.action),
            actor_id=self.actor_id,
            timestamp=self.timestamp,
            details=self.details,
            justification=self.justification,
            decision_notes=self.decision_notes,
            revision_id=self.revision_id,
            field_changes=dict(self.field_changes or {}),
            payload_hash=self.payload_hash,
            prev_hash=self.prev_hash,
            hash=self.hash,
        )
