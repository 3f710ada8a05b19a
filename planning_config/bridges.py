"""
Config -> Kernel Bridges.

Functions that convert PlanningPolicy artifacts into kernel-compatible
inputs.  These live in planning_config (the producer) because the kernel
must NEVER import planning_config.

Usage:
    from planning_config.bridges import build_validation_policy

    config = get_active_config()
    policy = build_validation_policy(config)
"""

from __future__ import annotations

from planning_config.schema import FieldBound, PlanningPolicy
from planning_kernel.domain.validation import FieldRule, ValidationPolicy


def _field_rule(bound: FieldBound) -> FieldRule:
    return FieldRule(
        minimum=bound.minimum,
        maximum=bound.maximum,
        min_inclusive=bound.min_inclusive,
        max_inclusive=bound.max_inclusive,
        integer=bound.integer,
    )


def build_validation_policy(config: PlanningPolicy) -> ValidationPolicy:
    """Build the kernel ValidationPolicy from a loaded configuration set."""
    return ValidationPolicy(
        field_rules={b.field: _field_rule(b) for b in config.field_bounds},
        plan_year_window=config.plan_year_window,
        justification_min_length=config.justification.min_length,
        justification_max_length=config.justification.max_length,
        decision_notes_min_length=config.decision_notes.min_length,
        decision_notes_max_length=config.decision_notes.max_length,
    )
