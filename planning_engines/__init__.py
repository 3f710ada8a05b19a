"""
Module: planning_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines.  This is
    the canonical import surface for higher layers (planning_kernel services,
    planning_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import planning_kernel/domain and planning_kernel/db/types.
    MUST NOT import planning_services.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic: floats are forbidden.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine``, emitting a
    PLANNING_ENGINE_TRACE log record with engine name, version, input
    fingerprint and duration.
"""

from planning_engines.goal_calculator import (
    CalculatedGoals,
    achievement_percent,
    calculate,
)
from planning_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "CalculatedGoals",
    "achievement_percent",
    "calculate",
    "compute_input_fingerprint",
    "traced_engine",
]
