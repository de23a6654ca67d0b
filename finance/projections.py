"""Profit & loss and COGS projections for the feasibility model.

PERIODS:
--------
- Period 0 is the upfront period: only the one-time charge (OTC) is
  recognized, with OTC cost of goods. No opex, no depreciation.
- Periods 1..N recognize up to twelve months of recurring revenue each,
  capped by whatever contract value remains, until the contract is used up.
- Opex is spread flat over the depreciation horizon whether or not revenue
  is still being recognized in a given period (fixed cost base).
- Depreciation is straight-line over the same horizon, starting at period 1.

Contracts longer than the modeled horizon are truncated: recurring revenue
after the last period is not recognized anywhere.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import List, Optional, Tuple

from analytics.contracts import (
    CogsProjection,
    FinancialInputs,
    ProjectionTotals,
    YearlyProjection,
)
from finance.assumptions import DEFAULT_ASSUMPTIONS, FeasibilityAssumptions
from finance.utils import ZERO, rate

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


# =============================================================================
# Totals
# =============================================================================


def compute_totals(
    inputs: FinancialInputs,
    assumptions: FeasibilityAssumptions = DEFAULT_ASSUMPTIONS,
) -> ProjectionTotals:
    """Whole-contract revenue, COGS, opex and depreciation figures."""
    otc_revenue = inputs.monthly_revenue * rate(assumptions.otc_multiplier)
    monthly_total = inputs.monthly_revenue * inputs.contract_period
    total_revenue = otc_revenue + monthly_total

    cogs_rate = rate(assumptions.cogs_rate)
    otc_cogs = otc_revenue * cogs_rate
    monthly_cogs = monthly_total * cogs_rate

    marketing_cost = total_revenue * rate(assumptions.marketing_rate)
    operational_cost = inputs.investment_cost * rate(assumptions.operational_rate)

    totals = ProjectionTotals(
        otc_revenue=otc_revenue,
        monthly_total=monthly_total,
        total_revenue=total_revenue,
        otc_cogs=otc_cogs,
        monthly_cogs=monthly_cogs,
        total_cogs=otc_cogs + monthly_cogs,
        marketing_cost=marketing_cost,
        operational_cost=operational_cost,
        total_opex=marketing_cost + operational_cost,
        annual_depreciation=inputs.investment_cost / assumptions.depreciation_years,
        cost_ibl=total_revenue,
    )

    logger.debug(
        "Totals: revenue=%s (otc=%s, recurring=%s) opex=%s depreciation/yr=%s",
        totals.total_revenue,
        totals.otc_revenue,
        totals.monthly_total,
        totals.total_opex,
        totals.annual_depreciation,
    )
    return totals


# =============================================================================
# Revenue recognition
# =============================================================================


def recognized_recurring_revenue(
    inputs: FinancialInputs, year: int
) -> Decimal:
    """Recurring revenue recognized in period ``year`` (>= 1).

    A full year of monthly revenue, capped by the contract value left after
    the previous periods. Zero once the contract has run out.
    """
    if year < 1:
        return ZERO

    contract_years = math.ceil(inputs.contract_period / MONTHS_PER_YEAR)
    if year > contract_years:
        return ZERO

    annual = inputs.monthly_revenue * MONTHS_PER_YEAR
    remaining = inputs.monthly_revenue * inputs.contract_period - annual * (year - 1)
    return min(annual, remaining)


def _check_truncation(inputs: FinancialInputs, assumptions: FeasibilityAssumptions) -> None:
    covered = assumptions.horizon_years * MONTHS_PER_YEAR
    if inputs.contract_period > covered:
        unrecognized = inputs.monthly_revenue * (inputs.contract_period - covered)
        logger.warning(
            "Contract of %d months exceeds the %d-month horizon; %s of recurring "
            "revenue is not recognized",
            inputs.contract_period,
            covered,
            unrecognized,
        )


# =============================================================================
# Projections
# =============================================================================


def build_cogs_projections(
    inputs: FinancialInputs,
    assumptions: FeasibilityAssumptions = DEFAULT_ASSUMPTIONS,
    totals: Optional[ProjectionTotals] = None,
) -> List[CogsProjection]:
    """Per-period cost of goods: OTC COGS at period 0, recurring COGS after."""
    if totals is None:
        totals = compute_totals(inputs, assumptions)
    cogs_rate = rate(assumptions.cogs_rate)

    rows: List[CogsProjection] = []
    for year in assumptions.periods:
        if year == 0:
            otc_cogs = totals.otc_cogs
            monthly_cogs = ZERO
        else:
            otc_cogs = ZERO
            monthly_cogs = recognized_recurring_revenue(inputs, year) * cogs_rate

        rows.append(
            CogsProjection(
                year=year,
                otc_cogs=otc_cogs,
                monthly_cogs=monthly_cogs,
                total_cogs=otc_cogs + monthly_cogs,
            )
        )
    return rows


def build_yearly_projections(
    inputs: FinancialInputs,
    assumptions: FeasibilityAssumptions = DEFAULT_ASSUMPTIONS,
    totals: Optional[ProjectionTotals] = None,
) -> List[YearlyProjection]:
    """Per-period P&L from revenue down to net income."""
    if totals is None:
        totals = compute_totals(inputs, assumptions)

    bad_debt_rate = rate(assumptions.bad_debt_rate)
    tax_rate = rate(assumptions.tax_rate)
    opex_per_period = totals.total_opex / assumptions.depreciation_years

    rows: List[YearlyProjection] = []
    for year in assumptions.periods:
        if year == 0:
            revenue = totals.otc_revenue
            opex = ZERO
            depreciation = ZERO
        else:
            revenue = recognized_recurring_revenue(inputs, year)
            in_horizon = year <= assumptions.depreciation_years
            opex = opex_per_period if in_horizon else ZERO
            depreciation = totals.annual_depreciation if in_horizon else ZERO

        bad_debt = revenue * bad_debt_rate
        ebitda = revenue - bad_debt - opex
        ebit = ebitda - depreciation
        tax = ebit * tax_rate

        rows.append(
            YearlyProjection(
                year=year,
                revenue=revenue,
                bad_debt=bad_debt,
                opex=opex,
                ebitda=ebitda,
                depreciation=depreciation,
                ebit=ebit,
                tax=tax,
                net_income=ebit - tax,
            )
        )
    return rows


def build_projections(
    inputs: FinancialInputs,
    assumptions: FeasibilityAssumptions = DEFAULT_ASSUMPTIONS,
) -> Tuple[ProjectionTotals, List[YearlyProjection], List[CogsProjection]]:
    """Totals, P&L rows and COGS rows for one set of inputs."""
    _check_truncation(inputs, assumptions)
    totals = compute_totals(inputs, assumptions)
    yearly = build_yearly_projections(inputs, assumptions, totals)
    cogs = build_cogs_projections(inputs, assumptions, totals)
    return totals, yearly, cogs


__all__ = [
    "compute_totals",
    "recognized_recurring_revenue",
    "build_yearly_projections",
    "build_cogs_projections",
    "build_projections",
]
