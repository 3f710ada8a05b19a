"""Services for the planning kernel (write side)."""

from planning_kernel.services.auditor_service import AuditorService
from planning_kernel.services.plan_lifecycle_service import PlanLifecycleService
from planning_kernel.services.revision_service import RevisionService
from planning_kernel.services.sequence_service import SequenceService

__all__ = [
    "AuditorService",
    "PlanLifecycleService",
    "RevisionService",
    "SequenceService",
]
