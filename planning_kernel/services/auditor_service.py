"""
AuditorService -- tamper-evident plan audit trail and hash chain maintenance.

Responsibility:
    Creates immutable, hash-chained audit entries for every plan creation,
    activation, archival, revision request and revision decision.  Builds
    the human-readable ``details`` summary for each entry and provides
    chain validation for tamper detection.

Architecture position:
    Kernel > Services -- imperative shell, called by PlanLifecycleService
    and RevisionService within their caller's transaction.

Invariants enforced:
    - Sequence monotonicity via SequenceService (never max+1).
    - Chain integrity: ``hash = H(plan_id | seq | action | payload_hash |
      prev_hash)``; ``payload_hash`` covers every stored column of the entry.
    - Append-only: entries are never modified or deleted (ORM listeners on
      AuditEntryModel).

Failure modes:
    - AuditChainBrokenError: a recomputed payload hash or chain hash does
      not match the stored value, or prev_hash does not match the
      predecessor's hash.

Audit relevance:
    This IS the audit service.  The approved-revision entry records both
    the value the producer requested against and the live value replaced
    at decision time; a mismatch is the visible signature of two approvals
    racing on the same field.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from planning_kernel.domain.audit import AuditAction
from planning_kernel.domain.clock import Clock
from planning_kernel.domain.plan_inputs import display_name, format_field_value
from planning_kernel.exceptions import AuditChainBrokenError
from planning_kernel.logging_config import get_logger
from planning_kernel.models.audit_entry import AuditEntryModel
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.models.plan_revision import PlanRevisionModel
from planning_kernel.services.base import BaseService
from planning_kernel.services.sequence_service import SequenceService
from planning_kernel.utils.hashing import hash_audit_entry, hash_payload

logger = get_logger("services.auditor")


def _jsonable(value: Any) -> Any:
    """Reduce Decimal/UUID/date values to JSON-native strings."""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, UUID):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _change_summary(field: str, old: Any, new: Any) -> str:
    return (
        f"{display_name(field)}: "
        f"{format_field_value(field, old)} → {format_field_value(field, new)}"
    )


def entry_payload(
    *,
    plan_id: UUID,
    owner_id: UUID,
    action: str,
    actor_id: UUID,
    timestamp: datetime,
    details: str,
    justification: str | None,
    decision_notes: str | None,
    revision_id: UUID | None,
    field_changes: dict[str, Any],
) -> dict[str, Any]:
    """The hashed content of one audit entry."""
    return {
        "plan_id": str(plan_id),
        "owner_id": str(owner_id),
        "action": action,
        "actor_id": str(actor_id),
        "timestamp": timestamp.astimezone(timezone.utc).isoformat(),
        "details": details,
        "justification": justification,
        "decision_notes": decision_notes,
        "revision_id": str(revision_id) if revision_id else None,
        "field_changes": field_changes,
    }


class AuditorService(BaseService[AuditEntryModel]):
    """
    Service for creating and validating hash-chained plan audit entries.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT serve audit queries; see AuditSelector.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        return self.session.execute(
            select(AuditEntryModel.hash)
            .order_by(AuditEntryModel.seq.desc())
            .limit(1)
        ).scalar_one_or_none()

    def _create_entry(
        self,
        plan: BusinessPlanModel,
        action: AuditAction,
        actor_id: UUID,
        details: str,
        *,
        justification: str | None = None,
        decision_notes: str | None = None,
        revision_id: UUID | None = None,
        field_changes: dict[str, Any] | None = None,
    ) -> AuditEntryModel:
        """
        Append one entry to the chain and flush it.

        Postconditions:
            - ``entry.seq`` is strictly greater than every earlier entry.
            - ``entry.prev_hash`` is the hash of the previous entry (None
              for the first entry ever written).
        """
        seq = self._sequence_service.next_value(SequenceService.AUDIT_ENTRY)
        prev_hash = self._get_last_hash()
        timestamp = self._clock.now()
        changes = _jsonable(field_changes or {})

        payload_hash = hash_payload(entry_payload(
            plan_id=plan.id,
            owner_id=plan.owner_id,
            action=action.value,
            actor_id=actor_id,
            timestamp=timestamp,
            details=details,
            justification=justification,
            decision_notes=decision_notes,
            revision_id=revision_id,
            field_changes=changes,
        ))
        entry_hash = hash_audit_entry(
            plan_id=str(plan.id),
            seq=seq,
            action=action.value,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )

        entry = AuditEntryModel(
            seq=seq,
            plan_id=plan.id,
            owner_id=plan.owner_id,
            action=action.value,
            actor_id=actor_id,
            timestamp=timestamp,
            details=details,
            justification=justification,
            decision_notes=decision_notes,
            revision_id=revision_id,
            field_changes=changes,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=entry_hash,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "audit_entry_created",
            extra={
                "plan_id": str(plan.id),
                "action": action.value,
                "seq": seq,
            },
        )
        return entry

    # Domain-specific recording methods

    def record_plan_created(
        self, plan: BusinessPlanModel, actor_id: UUID,
    ) -> AuditEntryModel:
        inputs = plan.inputs()
        details = (
            f"Created {plan.plan_year} business plan "
            f"({_field_line('income_goal', inputs.income_goal)})"
        )
        return self._create_entry(
            plan,
            AuditAction.CREATED,
            actor_id,
            details,
            field_changes={"inputs": inputs.to_dict(), "plan_year": plan.plan_year},
        )

    def record_plan_activated(
        self,
        plan: BusinessPlanModel,
        actor_id: UUID,
        demoted_plan_id: UUID | None = None,
    ) -> AuditEntryModel:
        details = f"Activated {plan.plan_year} business plan"
        if demoted_plan_id is not None:
            details += f"; previous active plan {demoted_plan_id} marked revised"
        return self._create_entry(
            plan,
            AuditAction.ACTIVATED,
            actor_id,
            details,
            field_changes={
                "status": {"from": "draft", "to": "active"},
                "demoted_plan_id": demoted_plan_id,
            },
        )

    def record_plan_archived(
        self, plan: BusinessPlanModel, actor_id: UUID,
    ) -> AuditEntryModel:
        return self._create_entry(
            plan,
            AuditAction.ARCHIVED,
            actor_id,
            f"Archived {plan.plan_year} draft business plan",
            field_changes={"status": {"from": "draft", "to": "archived"}},
        )

    def record_revision_requested(
        self,
        plan: BusinessPlanModel,
        revision: PlanRevisionModel,
        actor_id: UUID,
    ) -> AuditEntryModel:
        field = revision.field_to_change
        details = "Revision requested: " + _change_summary(
            field, revision.current_value, revision.requested_value,
        )
        return self._create_entry(
            plan,
            AuditAction.REVISED,
            actor_id,
            details,
            justification=revision.justification,
            revision_id=revision.id,
            field_changes={
                "field": field,
                "current_value": revision.current_value,
                "requested_value": revision.requested_value,
                "effective_date": revision.effective_date,
            },
        )

    def record_revision_approved(
        self,
        plan: BusinessPlanModel,
        revision: PlanRevisionModel,
        actor_id: UUID,
        previous_value: Decimal | int,
        new_value: Decimal | int,
    ) -> AuditEntryModel:
        field = revision.field_to_change
        details = "Revision approved: " + _change_summary(field, previous_value, new_value)
        return self._create_entry(
            plan,
            AuditAction.APPROVED,
            actor_id,
            details,
            justification=revision.justification,
            decision_notes=revision.decision_notes,
            revision_id=revision.id,
            field_changes={
                "field": field,
                "requested_against": revision.current_value,
                "previous_value": previous_value,
                "new_value": new_value,
            },
        )

    def record_revision_rejected(
        self,
        plan: BusinessPlanModel,
        revision: PlanRevisionModel,
        actor_id: UUID,
    ) -> AuditEntryModel:
        field = revision.field_to_change
        details = "Revision rejected: " + _change_summary(
            field, revision.current_value, revision.requested_value,
        )
        return self._create_entry(
            plan,
            AuditAction.REJECTED,
            actor_id,
            details,
            justification=revision.justification,
            decision_notes=revision.decision_notes,
            revision_id=revision.id,
            field_changes={
                "field": field,
                "current_value": revision.current_value,
                "requested_value": revision.requested_value,
            },
        )

    # Chain validation

    def validate_chain(self) -> bool:
        """
        Validate the entire audit chain.

        Postconditions:
            - Returns ``True`` only if every entry's payload hash and chain
              hash match their recomputed values and every ``prev_hash``
              matches its predecessor's ``hash``.

        Raises:
            AuditChainBrokenError: If validation fails at any point.
        """
        entries = self.session.execute(
            select(AuditEntryModel).order_by(AuditEntryModel.seq)
        ).scalars().all()

        previous: AuditEntryModel | None = None
        for entry in entries:
            expected_prev = previous.hash if previous is not None else None
            if entry.prev_hash != expected_prev:
                self._chain_broken(entry, expected_prev or "GENESIS", entry.prev_hash or "GENESIS")

            payload_hash = hash_payload(entry_payload(
                plan_id=entry.plan_id,
                owner_id=entry.owner_id,
                action=entry.action,
                actor_id=entry.actor_id,
                timestamp=entry.timestamp,
                details=entry.details,
                justification=entry.justification,
                decision_notes=entry.decision_notes,
                revision_id=entry.revision_id,
                field_changes=entry.field_changes,
            ))
            if payload_hash != entry.payload_hash:
                self._chain_broken(entry, payload_hash, entry.payload_hash)

            expected_hash = hash_audit_entry(
                plan_id=str(entry.plan_id),
                seq=entry.seq,
                action=entry.action,
                payload_hash=entry.payload_hash,
                prev_hash=entry.prev_hash,
            )
            if entry.hash != expected_hash:
                self._chain_broken(entry, expected_hash, entry.hash)
            previous = entry

        logger.info("audit_chain_validated", extra={"entry_count": len(entries)})
        return True

    def _chain_broken(self, entry: AuditEntryModel, expected: str, actual: str) -> None:
        logger.critical(
            "audit_chain_broken",
            extra={"audit_entry_id": str(entry.id), "seq": entry.seq},
        )
        raise AuditChainBrokenError(str(entry.id), expected, actual)


def _field_line(field: str, value: Any) -> str:
    return f"{display_name(field)}: {format_field_value(field, value)}"

