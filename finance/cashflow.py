"""Cash-flow build-up from the P&L projections.

For every period:
  total cash inflow = net income + depreciation (non-cash, added back)
  net cash flow     = total cash inflow - capex
  cumulative        = running sum of net cash flow, period 0 inclusive

Capex is the full investment cost at period 0 and zero afterwards.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Sequence

from analytics.contracts import CashFlowProjection, YearlyProjection
from finance.utils import ZERO, to_money

logger = logging.getLogger(__name__)


def build_cash_flows(
    yearly: Sequence[YearlyProjection],
    investment_cost: Decimal,
) -> List[CashFlowProjection]:
    """Build the cash-flow rows that line up with ``yearly``."""
    capex_t0 = to_money(investment_cost)
    cumulative = ZERO
    rows: List[CashFlowProjection] = []

    for p in yearly:
        capex = capex_t0 if p.year == 0 else ZERO
        inflow = p.net_income + p.depreciation
        net = inflow - capex
        cumulative += net

        rows.append(
            CashFlowProjection(
                year=p.year,
                net_income=p.net_income,
                add_back_depreciation=p.depreciation,
                total_cash_inflow=inflow,
                capex=capex,
                net_cash_flow=net,
                cumulative_cash_flow=cumulative,
            )
        )

    if rows:
        logger.debug(
            "Cash flow: t0=%s, closing cumulative=%s",
            rows[0].net_cash_flow,
            rows[-1].cumulative_cash_flow,
        )
    return rows


def net_cash_flow_series(rows: Sequence[CashFlowProjection]) -> List[float]:
    """Net cash flows as floats, in period order, for discounting."""
    return [float(r.net_cash_flow) for r in rows]


__all__ = [
    "build_cash_flows",
    "net_cash_flow_series",
]
