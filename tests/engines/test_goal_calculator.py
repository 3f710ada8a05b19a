"""
Tests for the Goal Calculation Engine.

Covers:
- The reference plan worked through every stage of the funnel
- Per-period rounding of units, applications and leads
- Lead source split and partners needed
- Zero divisors degrading to zero instead of raising
- Very large magnitudes rounding without decimal signals
- Achievement percentage
"""

from dataclasses import replace
from decimal import Context, Decimal, localcontext

import pytest

from planning_engines.goal_calculator import (
    CalculatedGoals,
    achievement_percent,
    calculate,
)
from planning_kernel.domain.plan_inputs import PlanInputs
from planning_kernel.domain.validation import INCOME_GOAL_CEILING


class TestReferencePlan:
    """$250k income, 60/40 mix, 200/150 bps, $425k average loan."""

    @pytest.fixture
    def goals(self, plan_inputs) -> CalculatedGoals:
        return calculate(plan_inputs)

    def test_weighted_commission(self, goals):
        assert goals.weighted_commission == Decimal("0.018")
        assert goals.refinance_percentage == Decimal("0.4")

    def test_annual_volume(self, goals):
        assert goals.annual_volume_goal == Decimal("13888888.888888889")
        assert round(goals.annual_volume_goal) == 13888889

    def test_volume_split_is_exact(self, goals):
        assert (
            goals.annual_volume_purchase + goals.annual_volume_refinance
            == goals.annual_volume_goal
        )
        assert goals.annual_volume_purchase == goals.annual_volume_goal * Decimal("0.6")

    def test_volume_periods_unrounded(self, goals):
        with localcontext(Context(prec=50)):
            assert goals.monthly_volume_total == goals.annual_volume_goal / 12
            assert goals.weekly_volume_total == goals.monthly_volume_total / 4
            assert goals.daily_volume_total == goals.weekly_volume_total / 5

    def test_annual_units(self, goals):
        assert goals.annual_units_goal == 33
        assert goals.annual_units_purchase == 20
        assert goals.annual_units_refinance == 13

    def test_period_units_rounded_from_period_volume(self, goals):
        assert goals.monthly_units_total == 3
        assert goals.monthly_units_purchase == 2
        assert goals.monthly_units_refinance == 1
        assert goals.weekly_units_total == 1
        assert goals.weekly_units_purchase == 0
        assert goals.daily_units_total == 0

    def test_applications(self, goals):
        assert goals.annual_apps_purchase == 40
        assert goals.annual_apps_refinance == 26
        assert goals.annual_apps_total == 66
        assert (goals.monthly_apps_purchase, goals.monthly_apps_refinance) == (3, 2)
        assert goals.monthly_apps_total == 5
        assert (goals.weekly_apps_purchase, goals.weekly_apps_refinance) == (1, 1)
        assert goals.weekly_apps_total == 2
        assert goals.daily_apps_total == 0

    def test_leads(self, goals):
        assert goals.annual_leads_purchase == 80
        assert goals.annual_leads_refinance == 52
        assert goals.annual_leads_total == 132
        assert (goals.monthly_leads_purchase, goals.monthly_leads_refinance) == (7, 4)
        assert goals.monthly_leads_total == 11
        assert (goals.weekly_leads_purchase, goals.weekly_leads_refinance) == (2, 1)
        assert goals.weekly_leads_total == 3
        assert (goals.daily_leads_purchase, goals.daily_leads_refinance) == (0, 0)

    def test_lead_sources(self, goals):
        assert goals.annual_partner_leads == 66
        assert goals.annual_self_gen_leads == 66
        # 66 / 12 = 5.5 rounds half-up
        assert goals.monthly_partner_leads == 6
        assert goals.monthly_self_gen_leads == 6

    def test_partners_needed_rounds_up(self, goals):
        assert goals.partners_needed == 2

    def test_period_drift_preserved(self, goals):
        """Daily figures scaled back up need not match the annual figure."""
        assert goals.daily_apps_total * 5 * 4 * 12 != goals.annual_apps_total


class TestFigures:

    def test_figures_exclude_rates(self, plan_inputs):
        figures = calculate(plan_inputs).figures()
        assert "weighted_commission" not in figures
        assert "refinance_percentage" not in figures
        assert "annual_volume_goal" in figures
        assert "partners_needed" in figures

    def test_refinance_figures(self, plan_inputs):
        figures = calculate(plan_inputs).refinance_figures()
        assert set(figures) >= {
            "annual_volume_refinance",
            "annual_units_refinance",
            "annual_apps_refinance",
            "daily_leads_refinance",
        }
        assert all(name.endswith("_refinance") for name in figures)

    def test_to_dict_has_every_field(self, plan_inputs):
        goals = calculate(plan_inputs)
        assert len(goals.to_dict()) == len(goals.figures()) + 2


class TestDegenerateInputs:
    """The engine never raises; zero divisors yield zero."""

    def test_zero_income_gives_zero_figures(self, plan_inputs):
        goals = calculate(replace(plan_inputs, income_goal=Decimal("0")))
        assert all(value == 0 for value in goals.figures().values())

    def test_zero_commission_gives_zero_volume(self, plan_inputs):
        goals = calculate(replace(plan_inputs, purchase_bps=0, refinance_bps=0))
        assert goals.weighted_commission == 0
        assert goals.annual_volume_goal == 0
        assert goals.annual_leads_total == 0

    def test_zero_average_loan_gives_zero_units(self, plan_inputs):
        goals = calculate(replace(plan_inputs, avg_loan_amount=Decimal("0")))
        assert goals.annual_volume_goal > 0
        assert goals.annual_units_goal == 0
        assert goals.annual_apps_total == 0

    def test_zero_rates_give_zero_counts(self, plan_inputs):
        goals = calculate(replace(
            plan_inputs,
            pull_through_purchase=Decimal("0"),
            conversion_rate_refinance=Decimal("0"),
            leads_per_partner_per_month=Decimal("0"),
        ))
        assert goals.annual_apps_purchase == 0
        assert goals.annual_leads_refinance == 0
        assert goals.partners_needed == 0

    def test_full_purchase_mix_zeroes_refinance(self, plan_inputs):
        goals = calculate(replace(plan_inputs, purchase_percentage=Decimal("1")))
        assert all(value == 0 for value in goals.refinance_figures().values())
        assert goals.annual_volume_purchase == goals.annual_volume_goal

    def test_all_partner_leads(self, plan_inputs):
        goals = calculate(replace(
            plan_inputs, leads_from_partners_percentage=Decimal("1"),
        ))
        assert goals.annual_partner_leads == goals.annual_leads_total
        assert goals.annual_self_gen_leads == 0


class TestExtremeInputs:
    """Magnitudes beyond the validated range still produce goals."""

    def test_very_large_income(self, plan_inputs):
        goals = calculate(replace(plan_inputs, income_goal=Decimal("1E+45")))
        assert goals.annual_volume_goal > Decimal("1E+46")
        assert goals.annual_volume_goal.as_tuple().exponent == -9
        assert goals.annual_units_goal > 10 ** 40
        assert goals.annual_leads_total > goals.annual_apps_total > 0
        assert goals.partners_needed > 0

    def test_minimal_commission_with_large_income(self, plan_inputs):
        goals = calculate(replace(
            plan_inputs,
            income_goal=Decimal("1E+38"),
            purchase_bps=1,
            refinance_bps=1,
        ))
        assert goals.weighted_commission == Decimal("0.0001")
        assert goals.annual_volume_goal == Decimal("1E+42")
        assert goals.daily_units_total > 0

    def test_tiny_average_loan(self, plan_inputs):
        goals = calculate(replace(
            plan_inputs,
            income_goal=INCOME_GOAL_CEILING,
            avg_loan_amount=Decimal("0.000000001"),
        ))
        assert goals.annual_units_goal > 10 ** 20
        assert isinstance(goals.annual_units_goal, int)



class TestDeterminism:

    def test_same_inputs_same_goals(self, reference_inputs):
        first = calculate(PlanInputs.from_mapping(reference_inputs))
        second = calculate(PlanInputs.from_mapping(reference_inputs))
        assert first == second

    def test_float_and_decimal_inputs_agree(self, reference_inputs):
        as_floats = {
            k: float(v) if isinstance(v, Decimal) else v
            for k, v in reference_inputs.items()
        }
        assert (
            calculate(PlanInputs.from_mapping(as_floats))
            == calculate(PlanInputs.from_mapping(reference_inputs))
        )


class TestAchievementPercent:

    def test_percentage(self):
        assert achievement_percent(Decimal("50"), Decimal("200")) == Decimal("25")

    def test_over_goal(self):
        assert achievement_percent(45, 33) > 100

    def test_zero_goal(self):
        assert achievement_percent(10, 0) == 0
