#!/usr/bin/env python3
"""Command-line entrypoint for the investment feasibility model.

Two ways to supply inputs:

    python run_feasibility.py --config scenarios/base_case.yaml
    python run_feasibility.py --investment-cost 600000000 \\
        --monthly-revenue 50000000 --contract-period 24

Output is a text summary (default) or JSON (``--format json``);
``--export out.xlsx`` also writes the feasibility workbook.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from analytics.config_schema import build_schema_dataframe
from analytics.contracts import CalculationResults, FinancialInputs
from analytics.evaluate_scenario import evaluate_scenario, results_as_dict, run_analysis
from analytics.export_helpers import describe_payback, export_feasibility_workbook
from analytics.formatting import format_currency, format_percentage, parse_amount
from analytics.schema_guard import ConfigValidationError
from finance.assumptions import DEFAULT_ASSUMPTIONS, FeasibilityAssumptions
from finance.utils import pct_to_decimal


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Investment feasibility analysis (NPV / IRR / payback)"
    )
    parser.add_argument("--config", type=str, help="Scenario config (YAML or JSON)")
    parser.add_argument("--customer-name", type=str, default="Customer")
    parser.add_argument(
        "--investment-cost",
        type=str,
        help="Upfront investment; formatted amounts like 'Rp 600.000.000' are accepted",
    )
    parser.add_argument("--monthly-revenue", type=str, help="Recurring revenue per month")
    parser.add_argument("--contract-period", type=int, help="Contract length in months")
    parser.add_argument("--otc-cost", type=str, default="0", help="One-time cost")
    parser.add_argument("--wacc", type=float, help="WACC override, percent or decimal")
    parser.add_argument("--tax-rate", type=float, help="Tax rate override, percent or decimal")
    parser.add_argument(
        "--validation-mode",
        default="strict",
        choices=["strict", "relaxed"],
        help="Config validation mode (default: strict)",
    )
    parser.add_argument("--format", default="text", choices=["text", "json"])
    parser.add_argument("--export", type=str, help="Write an .xlsx workbook to this path")
    parser.add_argument(
        "--chart",
        action="store_true",
        help="Embed a cash-flow chart in the exported workbook",
    )
    parser.add_argument(
        "--show-schema",
        action="store_true",
        help="Print the fields a scenario file accepts and exit",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _assumption_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.wacc is not None:
        overrides["wacc"] = pct_to_decimal(args.wacc)
    if args.tax_rate is not None:
        overrides["tax_rate"] = pct_to_decimal(args.tax_rate)
    return overrides


def render_text(results: CalculationResults, inputs: FinancialInputs, wacc: float) -> str:
    """Human-readable summary using the report formatters."""
    irr_text = "n/a" if results.irr is None else format_percentage(results.irr)
    if results.irr is not None and not results.irr_converged:
        irr_text += " (did not converge)"

    lines = [
        f"Feasibility analysis: {inputs.customer_name}",
        f"  Investment cost:  {format_currency(inputs.investment_cost)}",
        f"  Monthly revenue:  {format_currency(inputs.monthly_revenue)}",
        f"  Contract period:  {inputs.contract_period} months",
        f"  Total revenue:    {format_currency(results.total_revenue)}",
        f"  Total OPEX:       {format_currency(results.total_opex)}",
        f"  NPV @ WACC {format_percentage(wacc * 100)}: {format_currency(results.npv)}",
        f"  IRR:              {irr_text}",
        f"  Payback:          {describe_payback(results.payback_period)}",
        f"  Verdict:          {'VIABLE' if results.is_viable else 'NOT VIABLE'}",
    ]
    lines.extend(f"  Warning: {w}" for w in results.warnings)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.show_schema:
        # Importing the loader registers the input and assumption fields
        schema = build_schema_dataframe()
        print(schema.to_string(index=False))
        return 0

    overrides = _assumption_overrides(args)

    try:
        if args.config:
            scenario = evaluate_scenario(args.config, validation_mode=args.validation_mode)
            inputs = scenario.inputs
            assumptions = FeasibilityAssumptions(**scenario.assumptions)
            if overrides:
                assumptions = assumptions.with_overrides(**overrides)
                results = run_analysis(inputs, assumptions)
            else:
                results = scenario.results
        else:
            required = (args.investment_cost, args.monthly_revenue, args.contract_period)
            if any(v is None for v in required):
                parser.error(
                    "either --config or --investment-cost, --monthly-revenue and "
                    "--contract-period are required"
                )
            inputs = FinancialInputs(
                customer_name=args.customer_name,
                investment_cost=parse_amount(args.investment_cost),
                monthly_revenue=parse_amount(args.monthly_revenue),
                contract_period=args.contract_period,
                otc_cost=parse_amount(args.otc_cost),
            )
            assumptions = DEFAULT_ASSUMPTIONS.with_overrides(**overrides)
            results = run_analysis(inputs, assumptions)
    except (ValueError, ConfigValidationError, FileNotFoundError) as exc:
        parser.error(str(exc))

    if args.format == "json":
        print(json.dumps(results_as_dict(results), indent=2))
    else:
        print(render_text(results, inputs, assumptions.wacc))

    if args.export:
        path = export_feasibility_workbook(
            results,
            inputs,
            args.export,
            include_chart=args.chart,
            assumptions=assumptions,
        )
        if args.format == "text":
            print(f"Workbook written to {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
