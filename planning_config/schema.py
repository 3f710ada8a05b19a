"""
PlanningPolicy schema.

Defines the human-authored, reviewable source artifact for planning
business parameters.  YAML sets are parsed into these types by the loader
and converted into the kernel's ValidationPolicy by the bridges.

Key distinction:
  PlanningPolicy   = configuration artifact (human-authored, versioned)
  ValidationPolicy = kernel runtime object (built by bridges)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


class ConfigurationError(ValueError):
    """A configuration set is structurally invalid.

    ``errors`` lists every problem found, not only the first.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


# ---------------------------------------------------------------------------
# Input bounds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldBound:
    """Accepted numeric range for one plan input."""

    field: str
    minimum: Decimal | None = None
    maximum: Decimal | None = None
    min_inclusive: bool = True
    max_inclusive: bool = True
    integer: bool = False


# ---------------------------------------------------------------------------
# Free-text policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextPolicy:
    """Length window for a free-text field, measured after stripping."""

    min_length: int
    max_length: int


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlanningPolicy:
    """One complete, validated planning configuration set."""

    config_id: str
    version: int
    field_bounds: tuple[FieldBound, ...]
    justification: TextPolicy
    decision_notes: TextPolicy
    plan_year_window: int = 5
    description: str = ""
    checksum: str = ""

    def bound_for(self, field: str) -> FieldBound | None:
        for bound in self.field_bounds:
            if bound.field == field:
                return bound
        return None
