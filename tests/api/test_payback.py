"""
Tests for finance.payback.payback_period.

Covers interpolation inside the break-even year, immediate payback, the
never-recovered sentinel and the month roll-over.
"""

from decimal import Decimal

from analytics.contracts import CashFlowProjection, FinancialInputs, PaybackPeriod
from finance.cashflow import build_cash_flows
from finance.payback import IMMEDIATE_PAYBACK, never_recovered, payback_period
from finance.projections import build_projections

M = 1_000_000


def _cash_flows(investment, monthly, period):
    inputs = FinancialInputs("PT Payback", investment, monthly, period)
    _, yearly, _ = build_projections(inputs)
    return build_cash_flows(yearly, inputs.investment_cost)


def _rows_from_nets(nets):
    rows, cumulative = [], Decimal(0)
    for year, net in enumerate(nets):
        net = Decimal(net)
        cumulative += net
        rows.append(
            CashFlowProjection(
                year=year,
                net_income=net,
                add_back_depreciation=Decimal(0),
                total_cash_inflow=net,
                capex=Decimal(0),
                net_cash_flow=net,
                cumulative_cash_flow=cumulative,
            )
        )
    return rows


def test_reference_scenario_pays_back_in_second_period():
    """Cumulative -52.775M after period 1, +441.5375M flow in period 2."""
    result = payback_period(_cash_flows(600 * M, 50 * M, 24))

    # (2 - 1) + 52.775 / 441.5375 = 1.1195 years
    assert result == PaybackPeriod(years=1, months=1, total_months=13)


def test_immediate_payback_when_period_zero_is_non_negative():
    rows = _cash_flows(100, 100, 12)

    assert rows[0].net_cash_flow >= 0
    assert payback_period(rows) == IMMEDIATE_PAYBACK == PaybackPeriod(0, 0, 0)


def test_never_recovered_sentinel():
    rows = _cash_flows(600 * M, 10 * M, 24)

    assert rows[-1].cumulative_cash_flow < 0
    assert payback_period(rows) == PaybackPeriod(years=6, months=12, total_months=84)
    assert never_recovered() == PaybackPeriod(6, 12, 84)


def test_interpolation_uses_previous_cumulative_and_current_flow():
    # break-even in period 3: prev cumulative -50, flow 200 -> 2.25 years
    rows = _rows_from_nets([-250, 100, 100, 200, 0, 0, 0])

    assert payback_period(rows) == PaybackPeriod(years=2, months=3, total_months=27)


def test_months_rolling_to_twelve_carry_into_years():
    # 1.99 years: 11.88 months rounds to 12, which becomes a whole year
    rows = _rows_from_nets([-199, 100, 100, 0, 0, 0, 0])
    result = payback_period(rows)

    assert result == PaybackPeriod(years=2, months=0, total_months=24)


def test_months_round_half_up():
    # fraction 0.125 of a year = 1.5 months -> 2
    rows = _rows_from_nets([-100, 800, 0, 0, 0, 0, 0])

    assert payback_period(rows) == PaybackPeriod(years=0, months=2, total_months=2)
