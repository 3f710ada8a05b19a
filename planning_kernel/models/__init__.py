"""ORM models for the planning kernel."""

from planning_kernel.models.audit_entry import AuditEntryModel
from planning_kernel.models.business_plan import BusinessPlanModel
from planning_kernel.models.plan_revision import PlanRevisionModel

__all__ = [
    "AuditEntryModel",
    "BusinessPlanModel",
    "PlanRevisionModel",
]
