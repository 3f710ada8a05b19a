"""
ORM-Level Immutability Enforcement.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  Listeners registered here intercept them and check the
append-only rules:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError is raised and the flush is
aborted.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity         | When Immutable                          | Rule
---------------|-----------------------------------------|----------------------------
AuditEntry     | ALWAYS (from creation)                  | No UPDATE, no DELETE
PlanRevision   | After status = approved / rejected      | No UPDATE, no DELETE
BusinessPlan   | After status = revised / archived       | No UPDATE; never DELETE

The pending -> approved/rejected flip and the active -> revised demotion are
themselves allowed: the check inspects the attribute history and only
blocks changes to a row whose PERSISTED status is already terminal.

===============================================================================
USAGE
===============================================================================

Registered by ``create_tables()``; idempotent:

    from planning_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history

from planning_kernel.exceptions import ImmutabilityViolationError
from planning_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_TERMINAL_REVISION = frozenset({"approved", "rejected"})
_TERMINAL_PLAN = frozenset({"revised", "archived"})


def _persisted_status(target) -> str | None:
    """Status as it was loaded from the database, before this flush."""
    history = get_history(target, "status")
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_audit_entry_immutability(mapper, connection, target):
    _block("AuditEntry", target, "UPDATE", "Audit entries are append-only")


def _check_audit_entry_delete(mapper, connection, target):
    _block("AuditEntry", target, "DELETE", "Audit entries are append-only")


def _check_revision_immutability(mapper, connection, target):
    if _persisted_status(target) in _TERMINAL_REVISION:
        _block(
            "PlanRevision", target, "UPDATE",
            "Decided revisions cannot be modified",
        )


def _check_revision_delete(mapper, connection, target):
    if _persisted_status(target) in _TERMINAL_REVISION:
        _block(
            "PlanRevision", target, "DELETE",
            "Decided revisions cannot be deleted",
        )


def _check_plan_immutability(mapper, connection, target):
    if _persisted_status(target) in _TERMINAL_PLAN:
        _block(
            "BusinessPlan", target, "UPDATE",
            "Revised or archived plans cannot be modified",
        )


def _check_plan_delete(mapper, connection, target):
    _block("BusinessPlan", target, "DELETE", "Plans are never deleted; archive a draft instead")


def _listeners():
    from planning_kernel.models.audit_entry import AuditEntryModel
    from planning_kernel.models.business_plan import BusinessPlanModel
    from planning_kernel.models.plan_revision import PlanRevisionModel

    return (
        (AuditEntryModel, "before_update", _check_audit_entry_immutability),
        (AuditEntryModel, "before_delete", _check_audit_entry_delete),
        (PlanRevisionModel, "before_update", _check_revision_immutability),
        (PlanRevisionModel, "before_delete", _check_revision_delete),
        (BusinessPlanModel, "before_update", _check_plan_immutability),
        (BusinessPlanModel, "before_delete", _check_plan_delete),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners. Safe to call repeatedly."""
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)

