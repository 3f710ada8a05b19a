"""
Plan input value set (``planning_kernel.domain.plan_inputs``).

Responsibility
--------------
The immutable set of eleven producer-supplied numbers that drive every
derived goal, plus the canonical field catalogue: snake_case names, the
camelCase aliases accepted at the boundary, human display names, and the
value formatting used in audit summaries.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Imported by the
engine, the validator, the ORM models and the services.

Invariants enforced
-------------------
* Every value is a ``Decimal`` except the two commission fields, which are
  ``int`` basis points.  Floats are converted through ``str`` so ``0.6``
  becomes exactly ``Decimal("0.6")``.
* ``replace()`` changes exactly one field and returns a new instance.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace as dc_replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping

from planning_kernel.exceptions import ValidationError

FIELD_NAMES: tuple[str, ...] = (
    "income_goal",
    "purchase_bps",
    "refinance_bps",
    "purchase_percentage",
    "avg_loan_amount",
    "pull_through_purchase",
    "pull_through_refinance",
    "conversion_rate_purchase",
    "conversion_rate_refinance",
    "leads_from_partners_percentage",
    "leads_per_partner_per_month",
)

INTEGER_FIELDS: frozenset[str] = frozenset({"purchase_bps", "refinance_bps"})

FIELD_ALIASES: dict[str, str] = {
    "incomeGoal": "income_goal",
    "purchaseBps": "purchase_bps",
    "refinanceBps": "refinance_bps",
    "purchasePercentage": "purchase_percentage",
    "avgLoanAmount": "avg_loan_amount",
    "pullThroughPurchase": "pull_through_purchase",
    "pullThroughRefinance": "pull_through_refinance",
    "conversionRatePurchase": "conversion_rate_purchase",
    "conversionRateRefinance": "conversion_rate_refinance",
    "leadsFromPartnersPercentage": "leads_from_partners_percentage",
    "leadsPerPartnerPerMonth": "leads_per_partner_per_month",
}

FIELD_DISPLAY_NAMES: dict[str, str] = {
    "income_goal": "Income Goal",
    "purchase_bps": "Purchase BPS",
    "refinance_bps": "Refinance BPS",
    "purchase_percentage": "Purchase Percentage",
    "avg_loan_amount": "Average Loan Amount",
    "pull_through_purchase": "Purchase Pull Through",
    "pull_through_refinance": "Refinance Pull Through",
    "conversion_rate_purchase": "Purchase Conversion Rate",
    "conversion_rate_refinance": "Refinance Conversion Rate",
    "leads_from_partners_percentage": "Leads from Partners %",
    "leads_per_partner_per_month": "Leads per Partner per Month",
}

_CURRENCY_FIELDS = frozenset({"income_goal", "avg_loan_amount"})
_PERCENT_FIELDS = frozenset({
    "purchase_percentage",
    "pull_through_purchase",
    "pull_through_refinance",
    "conversion_rate_purchase",
    "conversion_rate_refinance",
    "leads_from_partners_percentage",
})


def normalize_field_name(name: str) -> str:
    """Map a camelCase or snake_case field name to its snake_case form.

    Raises:
        ValidationError: If the name is not one of the eleven plan inputs.
    """
    if name in FIELD_NAMES:
        return name
    if name in FIELD_ALIASES:
        return FIELD_ALIASES[name]
    raise ValidationError([{
        "field": "field_to_change",
        "value": name,
        "message": "Unknown plan input field",
    }])


def _coerce(field: str, value: Any) -> tuple[Decimal | int | None, str | None]:
    """Return ``(coerced, None)`` or ``(None, message)``."""
    if value is None:
        return None, "Value is required"
    if isinstance(value, bool):
        return None, "Must be a number"
    if isinstance(value, float):
        value = str(value)
    try:
        number = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None, "Must be a number"
    if not number.is_finite():
        return None, "Must be a finite number"
    if field in INTEGER_FIELDS:
        if number != number.to_integral_value():
            return None, "Must be a whole number of basis points"
        return int(number), None
    return number, None


def coerce_field_value(field: str, value: Any) -> Decimal | int:
    """Coerce a single raw value to the field's numeric type.

    Raises:
        ValidationError: If the value is missing or not numeric.
    """
    coerced, message = _coerce(field, value)
    if message is not None:
        raise ValidationError([{"field": field, "value": value, "message": message}])
    return coerced


@dataclass(frozen=True)
class PlanInputs:
    """The producer-supplied inputs of one business plan. Immutable."""

    income_goal: Decimal
    purchase_bps: int
    refinance_bps: int
    purchase_percentage: Decimal
    avg_loan_amount: Decimal
    pull_through_purchase: Decimal
    pull_through_refinance: Decimal
    conversion_rate_purchase: Decimal
    conversion_rate_refinance: Decimal
    leads_from_partners_percentage: Decimal
    leads_per_partner_per_month: Decimal

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PlanInputs:
        """Build from a dict keyed by snake_case or camelCase names.

        Every missing or non-numeric field is reported in one
        ``ValidationError``; unknown keys are rejected as well.
        """
        errors: list[dict[str, Any]] = []
        normalized: dict[str, Any] = {}
        for key, raw in data.items():
            name = FIELD_ALIASES.get(key, key)
            if name not in FIELD_NAMES:
                errors.append({"field": key, "value": raw, "message": "Unknown plan input field"})
                continue
            normalized[name] = raw

        values: dict[str, Any] = {}
        for name in FIELD_NAMES:
            raw = normalized.get(name)
            coerced, message = _coerce(name, raw)
            if message is not None:
                errors.append({"field": name, "value": raw, "message": message})
            else:
                values[name] = coerced

        if errors:
            raise ValidationError(errors)
        return cls(**values)

    def get(self, field: str) -> Decimal | int:
        return getattr(self, normalize_field_name(field))

    def replace(self, field: str, value: Any) -> PlanInputs:
        """Return a copy with exactly one field changed."""
        name = normalize_field_name(field)
        return dc_replace(self, **{name: coerce_field_value(name, value)})

    def to_dict(self) -> dict[str, Decimal | int]:
        return asdict(self)

    def to_camel_dict(self) -> dict[str, Decimal | int]:
        reverse = {snake: camel for camel, snake in FIELD_ALIASES.items()}
        return {reverse[f.name]: getattr(self, f.name) for f in fields(self)}


def format_field_value(field: str, value: Decimal | int) -> str:
    """Human-readable rendering of a plan input value.

    Currency fields render as whole dollars (``$250,000``), commission
    fields as ``200 BPS``, fractions as a one-decimal percentage
    (``60.0%``) and leads per partner with one decimal.
    """
    name = FIELD_ALIASES.get(field, field)
    number = Decimal(value)
    if name in _CURRENCY_FIELDS:
        whole = number.quantize(Decimal(1), rounding=ROUND_HALF_UP)
        sign = "-" if whole < 0 else ""
        return f"{sign}${abs(whole):,}"
    if name in INTEGER_FIELDS:
        return f"{int(number)} BPS"
    if name in _PERCENT_FIELDS:
        pct = (number * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{pct}%"
    if name == "leads_per_partner_per_month":
        return str(number.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return str(number)


def display_name(field: str) -> str:
    name = FIELD_ALIASES.get(field, field)
    return FIELD_DISPLAY_NAMES.get(name, field)
