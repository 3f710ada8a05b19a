"""
planning_services -- Package init and public API.

Responsibility:
    Outer workflow facade over the planning kernel.  This is the layer that
    owns transaction boundaries: each public operation runs in its own
    ``session_scope`` and is retried when it loses a compare-and-swap.

Architecture position:
    Services -- orchestration over planning_kernel, planning_engines and
    planning_config.

    Dependency direction:
        planning_services/ -> planning_kernel/   (allowed)
        planning_services/ -> planning_config/   (allowed)
        planning_kernel/   -> planning_services/ (FORBIDDEN)
        planning_engines/  -> planning_services/ (FORBIDDEN)
"""

from planning_services.plan_workflow import PlanWorkflow

__all__ = [
    "PlanWorkflow",
]
