"""Feasibility model contracts and data structures.

Central repository for the dataclasses passed between the projection,
cash-flow, valuation and reporting layers. Money fields are Decimal;
rates are float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from finance.errors import InvalidInputError
from finance.utils import ZERO, to_money


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class FinancialInputs:
    """The four user inputs plus a display label.

    ``otc_cost`` is carried through to reports but does not enter the
    projection math.
    """

    customer_name: str
    investment_cost: Decimal
    monthly_revenue: Decimal
    contract_period: int
    otc_cost: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "investment_cost", to_money(self.investment_cost))
        object.__setattr__(self, "monthly_revenue", to_money(self.monthly_revenue))
        object.__setattr__(self, "otc_cost", to_money(self.otc_cost))

    def validate(self) -> "FinancialInputs":
        """Check preconditions; raise InvalidInputError listing every bad field."""
        bad: List[str] = []
        if not str(self.customer_name or "").strip():
            bad.append("customer_name")
        if not self.investment_cost > 0:
            bad.append("investment_cost")
        if not self.monthly_revenue > 0:
            bad.append("monthly_revenue")
        if isinstance(self.contract_period, bool) or not isinstance(self.contract_period, int):
            bad.append("contract_period")
        elif self.contract_period <= 0:
            bad.append("contract_period")
        if self.otc_cost < 0:
            bad.append("otc_cost")

        if bad:
            raise InvalidInputError(
                f"Invalid financial inputs: {', '.join(bad)}", fields=bad
            )
        return self


# =============================================================================
# Projections
# =============================================================================


@dataclass(frozen=True)
class YearlyProjection:
    """One P&L column."""

    year: int
    revenue: Decimal
    bad_debt: Decimal
    opex: Decimal
    ebitda: Decimal
    depreciation: Decimal
    ebit: Decimal
    tax: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class CogsProjection:
    year: int
    otc_cogs: Decimal
    monthly_cogs: Decimal
    total_cogs: Decimal


@dataclass(frozen=True)
class CashFlowProjection:
    year: int
    net_income: Decimal
    add_back_depreciation: Decimal
    total_cash_inflow: Decimal
    capex: Decimal
    net_cash_flow: Decimal
    cumulative_cash_flow: Decimal


@dataclass(frozen=True)
class ProjectionTotals:
    """Whole-contract totals computed before the per-period split."""

    otc_revenue: Decimal
    monthly_total: Decimal
    total_revenue: Decimal
    otc_cogs: Decimal
    monthly_cogs: Decimal
    total_cogs: Decimal
    marketing_cost: Decimal
    operational_cost: Decimal
    total_opex: Decimal
    annual_depreciation: Decimal
    cost_ibl: Decimal
    cost_obl: Decimal = ZERO


@dataclass(frozen=True)
class PaybackPeriod:
    years: int
    months: int
    total_months: int


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class CalculationResults:
    """Everything one analysis run produces.

    ``irr`` is the display percentage (21.5 for 21.5%); ``irr_fraction`` is
    the raw root used for the viability test. ``payback_period`` is None
    when the interpolation failed; the reason is in ``warnings``.
    """

    total_revenue: Decimal
    otc_revenue: Decimal
    monthly_total: Decimal
    otc_cogs: Decimal
    monthly_cogs: Decimal
    total_cogs: Decimal
    cost_ibl: Decimal
    cost_obl: Decimal
    total_opex: Decimal
    marketing_cost: Decimal
    operational_cost: Decimal
    yearly_projections: Tuple[YearlyProjection, ...]
    cogs_projections: Tuple[CogsProjection, ...]
    cash_flow_projections: Tuple[CashFlowProjection, ...]
    npv: float
    irr: Optional[float]
    irr_fraction: Optional[float]
    irr_converged: bool
    payback_period: Optional[PaybackPeriod]
    is_viable: bool
    warnings: Tuple[str, ...] = ()


@dataclass
class ScenarioResult:
    """Result of evaluating one scenario file."""

    scenario_name: str
    config_path: str
    inputs: FinancialInputs
    results: CalculationResults
    validation_mode: str = "strict"
    assumptions: Dict[str, Any] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "FinancialInputs",
    "YearlyProjection",
    "CogsProjection",
    "CashFlowProjection",
    "ProjectionTotals",
    "PaybackPeriod",
    "CalculationResults",
    "ScenarioResult",
]
