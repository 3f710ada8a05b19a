"""
Input validation (``planning_kernel.domain.validation``).

Responsibility
--------------
Checks plan inputs, plan years, revision values and free-text fields
against a ``ValidationPolicy``.  Every check collects all violations and
raises a single ``ValidationError`` listing each offending field.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.  The policy object is
built from configuration by ``planning_config.bridges``; this module never
reads configuration itself.  ``ValidationPolicy.default()`` mirrors the
shipped default configuration set.

Invariants enforced
-------------------
* Never fail-fast: a ``ValidationError`` names every violated field.
* Text lengths are measured after stripping surrounding whitespace, so a
  whitespace-only justification is always rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from planning_kernel.domain.plan_inputs import FIELD_NAMES, INTEGER_FIELDS, PlanInputs
from planning_kernel.exceptions import ValidationError

# Upper bound on income_goal; derived volumes must fit Numeric(38, 9).
INCOME_GOAL_CEILING = Decimal("1000000000000")


@dataclass(frozen=True)
class FieldRule:
    """Numeric range for one plan input field.

    ``None`` for a bound means unbounded on that side.
    """

    minimum: Decimal | None = None
    maximum: Decimal | None = None
    min_inclusive: bool = True
    max_inclusive: bool = True
    integer: bool = False

    def check(self, value: Decimal | int) -> str | None:
        """Return a message describing the violation, or None."""
        number = Decimal(value)
        if self.integer and number != number.to_integral_value():
            return "Must be a whole number"
        if self.minimum is not None:
            if self.min_inclusive and number < self.minimum:
                return f"Must be at least {self.minimum}"
            if not self.min_inclusive and number <= self.minimum:
                return f"Must be greater than {self.minimum}"
        if self.maximum is not None:
            if self.max_inclusive and number > self.maximum:
                return f"Must be at most {self.maximum}"
            if not self.max_inclusive and number >= self.maximum:
                return f"Must be less than {self.maximum}"
        return None


def _default_field_rules() -> dict[str, FieldRule]:
    zero, one = Decimal("0"), Decimal("1")
    fraction = FieldRule(minimum=zero, maximum=one)
    rate = FieldRule(minimum=zero, maximum=one, min_inclusive=False)
    bps = FieldRule(minimum=zero, maximum=Decimal("10000"), integer=True)
    return {
        "income_goal": FieldRule(minimum=zero, maximum=INCOME_GOAL_CEILING),
        "purchase_bps": bps,
        "refinance_bps": bps,
        "purchase_percentage": fraction,
        "avg_loan_amount": FieldRule(minimum=zero, min_inclusive=False),
        "pull_through_purchase": rate,
        "pull_through_refinance": rate,
        "conversion_rate_purchase": rate,
        "conversion_rate_refinance": rate,
        "leads_from_partners_percentage": fraction,
        "leads_per_partner_per_month": FieldRule(minimum=zero, min_inclusive=False),
    }


@dataclass(frozen=True)
class ValidationPolicy:
    """Business parameters governing input acceptance."""

    field_rules: Mapping[str, FieldRule] = field(default_factory=_default_field_rules)
    plan_year_window: int = 5
    justification_min_length: int = 100
    justification_max_length: int = 2000
    decision_notes_min_length: int = 200
    decision_notes_max_length: int = 2000

    @classmethod
    def default(cls) -> ValidationPolicy:
        return cls()

    def rule_for(self, field_name: str) -> FieldRule:
        return self.field_rules.get(field_name, FieldRule(integer=field_name in INTEGER_FIELDS))


def collect_input_errors(
    inputs: PlanInputs, policy: ValidationPolicy,
) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for name in FIELD_NAMES:
        value = getattr(inputs, name)
        message = policy.rule_for(name).check(value)
        if message is not None:
            errors.append({"field": name, "value": value, "message": message})
    return errors


def validate_plan_inputs(inputs: PlanInputs, policy: ValidationPolicy) -> None:
    """Raise ``ValidationError`` listing every out-of-range field."""
    errors = collect_input_errors(inputs, policy)
    if errors:
        raise ValidationError(errors)


def plan_year_error(
    plan_year: int, current_year: int, policy: ValidationPolicy,
) -> dict[str, Any] | None:
    window = policy.plan_year_window
    if not isinstance(plan_year, int) or isinstance(plan_year, bool):
        return {"field": "plan_year", "value": plan_year, "message": "Must be a year"}
    if abs(plan_year - current_year) > window:
        return {
            "field": "plan_year",
            "value": plan_year,
            "message": f"Must be within {window} years of {current_year}",
        }
    return None


def text_error(
    field_name: str, text: str | None, min_length: int, max_length: int,
) -> dict[str, Any] | None:
    stripped = (text or "").strip()
    if not stripped:
        return {"field": field_name, "value": text, "message": "Is required"}
    if len(stripped) < min_length:
        return {
            "field": field_name,
            "value": text,
            "message": f"Must be at least {min_length} characters",
        }
    if len(stripped) > max_length:
        return {
            "field": field_name,
            "value": text,
            "message": f"Must be at most {max_length} characters",
        }
    return None


def justification_error(text: str | None, policy: ValidationPolicy) -> dict[str, Any] | None:
    return text_error(
        "justification", text,
        policy.justification_min_length, policy.justification_max_length,
    )


def decision_notes_error(text: str | None, policy: ValidationPolicy) -> dict[str, Any] | None:
    return text_error(
        "decision_notes", text,
        policy.decision_notes_min_length, policy.decision_notes_max_length,
    )


def requested_value_error(
    field_name: str, value: Decimal | int, policy: ValidationPolicy,
) -> dict[str, Any] | None:
    message = policy.rule_for(field_name).check(value)
    if message is None:
        return None
    return {"field": "requested_value", "value": value, "message": message}
