"""
planning_engines.goal_calculator -- Income goal to production funnel decomposition.

Responsibility:
    Invert a producer's annual income goal into the loan volume, units,
    applications and leads required to hit it, per year, month, week and
    working day, split by channel (purchase / refinance) and by lead source
    (partner-referred / self-generated).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import planning_kernel/domain and planning_kernel/db/types.
    Consumed by PlanLifecycleService.calculated_goals() on every read; the
    result is never persisted.

Invariants enforced:
    - Determinism: identical inputs produce identical outputs; no clock,
      no state.
    - Totality: never raises for any representable PlanInputs.  Every
      division whose divisor is zero yields 0.
    - Exact channel split: annual volume is held at the 9-place storage
      scale before the split, so purchase + refinance == total exactly.
    - Exact lead-source split: self-generated leads are the remainder of
      the total after partner leads.

Period rules:
    - 12 months per year, 4 weeks per month, 5 working days per week.
    - Volumes are not rounded at any period.
    - Units are rounded half-up from each period's own volume, so
      daily x 5 x 4 x 12 need not equal the annual figure.
    - Applications and leads are rounded per channel from the annual
      channel figure divided by 12, 48 and 240; totals are the sum of the
      rounded channel figures.

Usage:
    from planning_engines.goal_calculator import calculate

    goals = calculate(inputs)
    goals.annual_units_goal  # 33 for the reference plan
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Context, Decimal, ROUND_HALF_EVEN, localcontext

from planning_engines.tracer import traced_engine
from planning_kernel.db.types import ceil_count, quantize_storage, round_count
from planning_kernel.domain.plan_inputs import PlanInputs

MONTHS_PER_YEAR = Decimal(12)
WEEKS_PER_MONTH = Decimal(4)
DAYS_PER_WEEK = Decimal(5)
BPS_PER_UNIT = Decimal(10000)

_ZERO = Decimal(0)
_ONE = Decimal(1)
_ENGINE_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN)

# Rates carried alongside the figures but excluded from figures()
_RATE_FIELDS = frozenset({"weighted_commission", "refinance_percentage"})


@dataclass(frozen=True)
class CalculatedGoals:
    """Every target derived from one PlanInputs value set. Never stored."""

    weighted_commission: Decimal
    refinance_percentage: Decimal

    # Volume
    annual_volume_goal: Decimal
    annual_volume_purchase: Decimal
    annual_volume_refinance: Decimal
    monthly_volume_total: Decimal
    monthly_volume_purchase: Decimal
    monthly_volume_refinance: Decimal
    weekly_volume_total: Decimal
    weekly_volume_purchase: Decimal
    weekly_volume_refinance: Decimal
    daily_volume_total: Decimal
    daily_volume_purchase: Decimal
    daily_volume_refinance: Decimal

    # Units
    annual_units_goal: int
    annual_units_purchase: int
    annual_units_refinance: int
    monthly_units_total: int
    monthly_units_purchase: int
    monthly_units_refinance: int
    weekly_units_total: int
    weekly_units_purchase: int
    weekly_units_refinance: int
    daily_units_total: int
    daily_units_purchase: int
    daily_units_refinance: int

    # Applications
    annual_apps_purchase: int
    annual_apps_refinance: int
    annual_apps_total: int
    monthly_apps_purchase: int
    monthly_apps_refinance: int
    monthly_apps_total: int
    weekly_apps_purchase: int
    weekly_apps_refinance: int
    weekly_apps_total: int
    daily_apps_purchase: int
    daily_apps_refinance: int
    daily_apps_total: int

    # Leads
    annual_leads_purchase: int
    annual_leads_refinance: int
    annual_leads_total: int
    monthly_leads_purchase: int
    monthly_leads_refinance: int
    monthly_leads_total: int
    weekly_leads_purchase: int
    weekly_leads_refinance: int
    weekly_leads_total: int
    daily_leads_purchase: int
    daily_leads_refinance: int
    daily_leads_total: int

    # Lead sources
    annual_partner_leads: int
    annual_self_gen_leads: int
    monthly_partner_leads: int
    monthly_self_gen_leads: int
    partners_needed: int

    def figures(self) -> dict[str, Decimal | int]:
        """Every volume and count figure, without the two derived rates."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _RATE_FIELDS
        }

    def refinance_figures(self) -> dict[str, Decimal | int]:
        return {k: v for k, v in self.figures().items() if k.endswith("_refinance")}

    def to_dict(self) -> dict[str, Decimal | int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _div(numerator: Decimal, divisor: Decimal) -> Decimal:
    if divisor == 0:
        return _ZERO
    return numerator / divisor


def _periods(annual: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """Unrounded (monthly, weekly, daily) share of an annual quantity."""
    monthly = annual / MONTHS_PER_YEAR
    weekly = monthly / WEEKS_PER_MONTH
    daily = weekly / DAYS_PER_WEEK
    return monthly, weekly, daily


def _period_counts(annual: int) -> tuple[int, int, int]:
    """Independently rounded (monthly, weekly, daily) counts."""
    monthly, weekly, daily = _periods(Decimal(annual))
    return round_count(monthly), round_count(weekly), round_count(daily)


@traced_engine("goal_calculator", "1.0", fingerprint_fields=("inputs",))
def calculate(inputs: PlanInputs) -> CalculatedGoals:
    """Derive the full goal funnel from plan inputs.

    Pure and total: returns zeros instead of raising on zero divisors.
    """
    with localcontext(_ENGINE_CONTEXT):
        purchase_pct = Decimal(inputs.purchase_percentage)
        refinance_pct = _ONE - purchase_pct
        weighted_commission = (
            purchase_pct * (Decimal(inputs.purchase_bps) / BPS_PER_UNIT)
            + refinance_pct * (Decimal(inputs.refinance_bps) / BPS_PER_UNIT)
        )

        # Income inversion
        if weighted_commission > 0:
            annual_volume = quantize_storage(
                Decimal(inputs.income_goal) / weighted_commission
            )
        else:
            annual_volume = _ZERO
        avg_loan = Decimal(inputs.avg_loan_amount)

        # Volume by channel and period
        volume_purchase = annual_volume * purchase_pct
        volume_refinance = annual_volume * refinance_pct
        monthly_total, weekly_total, daily_total = _periods(annual_volume)
        monthly_purchase, weekly_purchase, daily_purchase = _periods(volume_purchase)
        monthly_refinance, weekly_refinance, daily_refinance = _periods(volume_refinance)

        def units(volume: Decimal) -> int:
            return round_count(_div(volume, avg_loan))

        # Applications and leads by channel
        units_purchase = units(volume_purchase)
        units_refinance = units(volume_refinance)
        apps_purchase = round_count(
            _div(Decimal(units_purchase), Decimal(inputs.pull_through_purchase))
        )
        apps_refinance = round_count(
            _div(Decimal(units_refinance), Decimal(inputs.pull_through_refinance))
        )
        leads_purchase = round_count(
            _div(Decimal(apps_purchase), Decimal(inputs.conversion_rate_purchase))
        )
        leads_refinance = round_count(
            _div(Decimal(apps_refinance), Decimal(inputs.conversion_rate_refinance))
        )
        m_apps_p, w_apps_p, d_apps_p = _period_counts(apps_purchase)
        m_apps_r, w_apps_r, d_apps_r = _period_counts(apps_refinance)
        m_leads_p, w_leads_p, d_leads_p = _period_counts(leads_purchase)
        m_leads_r, w_leads_r, d_leads_r = _period_counts(leads_refinance)
        leads_total = leads_purchase + leads_refinance

        # Lead sources
        partner_leads = round_count(
            Decimal(leads_total) * Decimal(inputs.leads_from_partners_percentage)
        )
        self_gen_leads = leads_total - partner_leads
        monthly_partner = round_count(Decimal(partner_leads) / MONTHS_PER_YEAR)
        monthly_self_gen = round_count(Decimal(self_gen_leads) / MONTHS_PER_YEAR)
        partners_needed = ceil_count(
            _div(Decimal(monthly_partner), Decimal(inputs.leads_per_partner_per_month))
        )

        return CalculatedGoals(
            weighted_commission=weighted_commission,
            refinance_percentage=refinance_pct,
            annual_volume_goal=annual_volume,
            annual_volume_purchase=volume_purchase,
            annual_volume_refinance=volume_refinance,
            monthly_volume_total=monthly_total,
            monthly_volume_purchase=monthly_purchase,
            monthly_volume_refinance=monthly_refinance,
            weekly_volume_total=weekly_total,
            weekly_volume_purchase=weekly_purchase,
            weekly_volume_refinance=weekly_refinance,
            daily_volume_total=daily_total,
            daily_volume_purchase=daily_purchase,
            daily_volume_refinance=daily_refinance,
            annual_units_goal=units(annual_volume),
            annual_units_purchase=units_purchase,
            annual_units_refinance=units_refinance,
            monthly_units_total=units(monthly_total),
            monthly_units_purchase=units(monthly_purchase),
            monthly_units_refinance=units(monthly_refinance),
            weekly_units_total=units(weekly_total),
            weekly_units_purchase=units(weekly_purchase),
            weekly_units_refinance=units(weekly_refinance),
            daily_units_total=units(daily_total),
            daily_units_purchase=units(daily_purchase),
            daily_units_refinance=units(daily_refinance),
            annual_apps_purchase=apps_purchase,
            annual_apps_refinance=apps_refinance,
            annual_apps_total=apps_purchase + apps_refinance,
            monthly_apps_purchase=m_apps_p,
            monthly_apps_refinance=m_apps_r,
            monthly_apps_total=m_apps_p + m_apps_r,
            weekly_apps_purchase=w_apps_p,
            weekly_apps_refinance=w_apps_r,
            weekly_apps_total=w_apps_p + w_apps_r,
            daily_apps_purchase=d_apps_p,
            daily_apps_refinance=d_apps_r,
            daily_apps_total=d_apps_p + d_apps_r,
            annual_leads_purchase=leads_purchase,
            annual_leads_refinance=leads_refinance,
            annual_leads_total=leads_total,
            monthly_leads_purchase=m_leads_p,
            monthly_leads_refinance=m_leads_r,
            monthly_leads_total=m_leads_p + m_leads_r,
            weekly_leads_purchase=w_leads_p,
            weekly_leads_refinance=w_leads_r,
            weekly_leads_total=w_leads_p + w_leads_r,
            daily_leads_purchase=d_leads_p,
            daily_leads_refinance=d_leads_r,
            daily_leads_total=d_leads_p + d_leads_r,
            annual_partner_leads=partner_leads,
            annual_self_gen_leads=self_gen_leads,
            monthly_partner_leads=monthly_partner,
            monthly_self_gen_leads=monthly_self_gen,
            partners_needed=partners_needed,
        )


def achievement_percent(actual: Decimal | int, goal: Decimal | int) -> Decimal:
    """Recorded production as a percentage of a goal; 0 when the goal is 0."""
    goal_dec = Decimal(goal)
    if goal_dec == 0:
        return _ZERO
    with localcontext(_ENGINE_CONTEXT):
        return Decimal(actual) / goal_dec * 100
