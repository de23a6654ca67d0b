"""Payback period by linear interpolation inside the break-even year.

The break-even period is the first one whose cumulative cash flow is >= 0.
Within that period cash is assumed to arrive evenly, so the fraction of the
year needed is |cumulative before| / net cash flow of the period.
"""

from __future__ import annotations

import logging
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Sequence

from analytics.contracts import CashFlowProjection, PaybackPeriod
from finance.errors import NumericalError
from finance.utils import ZERO

logger = logging.getLogger(__name__)

IMMEDIATE_PAYBACK = PaybackPeriod(years=0, months=0, total_months=0)


def never_recovered(horizon_years: int = 6) -> PaybackPeriod:
    """Sentinel for cash flows still negative at the end of the horizon."""
    return PaybackPeriod(
        years=horizon_years,
        months=12,
        total_months=(horizon_years + 1) * 12,
    )


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def payback_period(rows: Sequence[CashFlowProjection]) -> PaybackPeriod:
    """Locate break-even and interpolate a fractional payback time.

    Returns the sentinel ``never_recovered`` when cumulative cash flow stays
    negative through the last row.

    Raises
    ------
    NumericalError
        If the break-even period has a zero net cash flow, which leaves the
        interpolation undefined.
    """
    cumulative = ZERO

    for i, row in enumerate(rows):
        previous = cumulative
        cumulative += row.net_cash_flow

        if cumulative < 0:
            continue

        if i == 0:
            return IMMEDIATE_PAYBACK

        current_flow = row.net_cash_flow
        if current_flow == 0:
            raise NumericalError(
                f"Payback interpolation undefined: zero net cash flow in period {row.year}"
            )

        fraction = abs(previous) / current_flow
        total_years = Decimal(i - 1) + fraction
        years = int(total_years.to_integral_value(rounding=ROUND_FLOOR))
        months = _round_half_up((total_years - years) * 12)
        total_months = _round_half_up(total_years * 12)
        if months == 12:
            # 11.5+ months rounds up into the next whole year
            years, months = years + 1, 0

        logger.debug("Payback after %.4f years (break-even in period %d)", total_years, i)
        return PaybackPeriod(years=years, months=months, total_months=total_months)

    horizon = len(rows) - 1 if rows else 6
    return never_recovered(horizon)


__all__ = [
    "IMMEDIATE_PAYBACK",
    "never_recovered",
    "payback_period",
]
