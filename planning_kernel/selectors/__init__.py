"""Selectors for the planning kernel (read side)."""

from planning_kernel.selectors.audit_selector import AuditSelector
from planning_kernel.selectors.plan_selector import PlanSelector
from planning_kernel.selectors.revision_selector import RevisionSelector

__all__ = [
    "AuditSelector",
    "PlanSelector",
    "RevisionSelector",
]
