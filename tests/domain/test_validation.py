"""
Tests for input validation.

Verifies:
- Default bounds for every plan input
- All violations collected into one ValidationError
- Plan year window
- Justification and decision notes text policy
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from planning_kernel.domain.plan_inputs import FIELD_NAMES
from planning_kernel.domain.validation import (
    INCOME_GOAL_CEILING,
    FieldRule,
    ValidationPolicy,
    collect_input_errors,
    decision_notes_error,
    justification_error,
    plan_year_error,
    requested_value_error,
    validate_plan_inputs,
)
from planning_kernel.exceptions import ValidationError


@pytest.fixture
def policy() -> ValidationPolicy:
    return ValidationPolicy.default()


class TestFieldRule:

    def test_inclusive_bounds(self):
        rule = FieldRule(minimum=Decimal("0"), maximum=Decimal("1"))
        assert rule.check(Decimal("0")) is None
        assert rule.check(Decimal("1")) is None
        assert rule.check(Decimal("1.01")) == "Must be at most 1"
        assert rule.check(Decimal("-0.01")) == "Must be at least 0"

    def test_exclusive_minimum(self):
        rule = FieldRule(minimum=Decimal("0"), min_inclusive=False)
        assert rule.check(Decimal("0")) == "Must be greater than 0"
        assert rule.check(Decimal("0.0001")) is None

    def test_integer_rule(self):
        assert FieldRule(integer=True).check(Decimal("1.5")) == "Must be a whole number"


class TestDefaultBounds:

    def test_reference_inputs_valid(self, plan_inputs, policy):
        assert collect_input_errors(plan_inputs, policy) == []
        validate_plan_inputs(plan_inputs, policy)

    def test_every_field_has_a_rule(self, policy):
        assert set(policy.field_rules) == set(FIELD_NAMES)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("income_goal", Decimal("-1")),
            ("income_goal", Decimal("1000000000000.01")),
            ("income_goal", Decimal("1E+45")),
            ("purchase_bps", 10001),
            ("refinance_bps", -1),
            ("purchase_percentage", Decimal("1.1")),
            ("avg_loan_amount", Decimal("0")),
            ("pull_through_purchase", Decimal("0")),
            ("pull_through_refinance", Decimal("1.5")),
            ("conversion_rate_purchase", Decimal("0")),
            ("conversion_rate_refinance", Decimal("-0.2")),
            ("leads_from_partners_percentage", Decimal("2")),
            ("leads_per_partner_per_month", Decimal("0")),
        ],
    )
    def test_out_of_range(self, plan_inputs, policy, field, value):
        errors = collect_input_errors(replace(plan_inputs, **{field: value}), policy)
        assert [e["field"] for e in errors] == [field]

    def test_boundaries_accepted(self, plan_inputs, policy):
        edge = replace(
            plan_inputs,
            income_goal=Decimal("0"),
            purchase_bps=10000,
            refinance_bps=0,
            purchase_percentage=Decimal("1"),
            pull_through_purchase=Decimal("1"),
            leads_from_partners_percentage=Decimal("0"),
        )
        assert collect_input_errors(edge, policy) == []

    def test_all_violations_reported(self, plan_inputs, policy):
        bad = replace(
            plan_inputs,
            income_goal=Decimal("-5"),
            avg_loan_amount=Decimal("0"),
            conversion_rate_purchase=Decimal("3"),
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_plan_inputs(bad, policy)

        assert exc_info.value.fields == (
            "income_goal", "avg_loan_amount", "conversion_rate_purchase",
        )
        assert exc_info.value.code == "VALIDATION_FAILED"

    def test_requested_value_uses_target_bound(self, policy):
        error = requested_value_error("pull_through_purchase", Decimal("1.2"), policy)
        assert error["field"] == "requested_value"
        assert requested_value_error("income_goal", Decimal("300000"), policy) is None

    def test_income_goal_ceiling(self, plan_inputs, policy):
        at_ceiling = replace(plan_inputs, income_goal=INCOME_GOAL_CEILING)
        assert collect_input_errors(at_ceiling, policy) == []

        error = requested_value_error("income_goal", Decimal("1E+40"), policy)
        assert error["field"] == "requested_value"
        assert error["message"] == f"Must be at most {INCOME_GOAL_CEILING}"


class TestPlanYear:

    @pytest.mark.parametrize("year", [2020, 2025, 2030])
    def test_within_window(self, policy, year):
        assert plan_year_error(year, 2025, policy) is None

    @pytest.mark.parametrize("year", [2019, 2031])
    def test_outside_window(self, policy, year):
        error = plan_year_error(year, 2025, policy)
        assert error["field"] == "plan_year"

    def test_non_integer_year(self, policy):
        assert plan_year_error("2025", 2025, policy) is not None
        assert plan_year_error(True, 2025, policy) is not None


class TestTextPolicy:

    def test_justification_accepted(self, policy, justification):
        assert justification_error(justification, policy) is None

    @pytest.mark.parametrize("text", ["", "   \n\t", None])
    def test_empty_justification(self, policy, text):
        assert justification_error(text, policy)["message"] == "Is required"

    def test_short_justification(self, policy):
        error = justification_error("x" * 99, policy)
        assert error["message"] == "Must be at least 100 characters"
        assert justification_error("x" * 100, policy) is None

    def test_length_measured_after_strip(self, policy):
        assert justification_error("   " + "x" * 99 + "   ", policy) is not None

    def test_long_justification(self, policy):
        assert justification_error("x" * 2001, policy)["field"] == "justification"

    def test_decision_notes_floor(self, policy, decision_notes, justification):
        assert decision_notes_error(decision_notes, policy) is None
        error = decision_notes_error(justification, policy)
        assert error["field"] == "decision_notes"
        assert error["message"] == "Must be at least 200 characters"

    def test_custom_policy(self, justification):
        lenient = ValidationPolicy(justification_min_length=10)
        assert justification_error("Short but ok", lenient) is None
