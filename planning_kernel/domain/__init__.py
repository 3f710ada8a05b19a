"""
Planning kernel domain layer -- pure value objects and rules, zero I/O.
"""

from planning_kernel.domain.actor import (
    Actor,
    ActorRole,
    ReportingLineProvider,
    StaticReportingLine,
)
from planning_kernel.domain.audit import AuditAction, AuditEntry
from planning_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from planning_kernel.domain.plan import (
    PLAN_TRANSITIONS,
    BusinessPlan,
    PlanStatus,
)
from planning_kernel.domain.plan_inputs import (
    FIELD_DISPLAY_NAMES,
    FIELD_NAMES,
    PlanInputs,
    format_field_value,
    normalize_field_name,
)
from planning_kernel.domain.revision import (
    REVISION_TRANSITIONS,
    PlanRevision,
    RevisionStatus,
)
from planning_kernel.domain.validation import (
    FieldRule,
    ValidationPolicy,
    validate_plan_inputs,
)

__all__ = [
    "Actor",
    "ActorRole",
    "ReportingLineProvider",
    "StaticReportingLine",
    "AuditAction",
    "AuditEntry",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "PLAN_TRANSITIONS",
    "BusinessPlan",
    "PlanStatus",
    "FIELD_DISPLAY_NAMES",
    "FIELD_NAMES",
    "PlanInputs",
    "format_field_value",
    "normalize_field_name",
    "REVISION_TRANSITIONS",
    "PlanRevision",
    "RevisionStatus",
    "FieldRule",
    "ValidationPolicy",
    "validate_plan_inputs",
]
