"""Feasibility analysis orchestrator.

run_analysis() is the pure entrypoint: FinancialInputs in,
CalculationResults out. evaluate_scenario() wraps it for scenario files.

Pipeline:
  inputs -> projections (P&L + COGS) -> cash flows -> {NPV, IRR, payback}
         -> viability verdict
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from analytics.contracts import CalculationResults, FinancialInputs, ScenarioResult
from analytics.scenario_loader import (
    assumptions_from_config,
    inputs_from_config,
    load_scenario_config,
)
from analytics.schema_guard import ConfigValidationError, validate_config
from finance.assumptions import DEFAULT_ASSUMPTIONS, FeasibilityAssumptions
from finance.cashflow import build_cash_flows, net_cash_flow_series
from finance.errors import NumericalError
from finance.irr import npv as calc_npv, solve_irr
from finance.payback import payback_period
from finance.projections import build_projections

logger = logging.getLogger(__name__)


def is_viable(npv_value: float, irr_fraction: Optional[float], wacc: float) -> bool:
    """Viable when NPV is positive and the fractional IRR beats WACC."""
    if irr_fraction is None:
        return False
    return npv_value > 0 and irr_fraction > wacc


def run_analysis(
    inputs: FinancialInputs,
    assumptions: Optional[FeasibilityAssumptions] = None,
) -> CalculationResults:
    """Run the full feasibility calculation for one set of inputs.

    Raises
    ------
    InvalidInputError
        If the inputs break a precondition. Numerical problems (IRR not
        converging, undefined payback) do not raise; they are reported via
        ``irr_converged``, ``payback_period=None`` and ``warnings``.
    """
    inputs.validate()
    assumptions = assumptions or DEFAULT_ASSUMPTIONS
    warnings: List[str] = []

    totals, yearly, cogs = build_projections(inputs, assumptions)
    cash_flows = build_cash_flows(yearly, inputs.investment_cost)
    series = net_cash_flow_series(cash_flows)

    npv_value = calc_npv(assumptions.wacc, series)

    irr_result = solve_irr(series)
    if not irr_result.converged:
        warnings.append(
            f"IRR did not converge ({irr_result.failure} after "
            f"{irr_result.iterations} iterations)"
        )
    irr_fraction = irr_result.rate

    try:
        payback = payback_period(cash_flows)
    except NumericalError as exc:
        logger.warning("Payback period unavailable for '%s': %s", inputs.customer_name, exc)
        warnings.append(str(exc))
        payback = None

    # An unconverged rate is best-effort only and never counts toward viability
    viable = is_viable(
        npv_value, irr_fraction if irr_result.converged else None, assumptions.wacc
    )

    results = CalculationResults(
        total_revenue=totals.total_revenue,
        otc_revenue=totals.otc_revenue,
        monthly_total=totals.monthly_total,
        otc_cogs=totals.otc_cogs,
        monthly_cogs=totals.monthly_cogs,
        total_cogs=totals.total_cogs,
        cost_ibl=totals.cost_ibl,
        cost_obl=totals.cost_obl,
        total_opex=totals.total_opex,
        marketing_cost=totals.marketing_cost,
        operational_cost=totals.operational_cost,
        yearly_projections=tuple(yearly),
        cogs_projections=tuple(cogs),
        cash_flow_projections=tuple(cash_flows),
        npv=npv_value,
        irr=irr_result.percent,
        irr_fraction=irr_fraction,
        irr_converged=irr_result.converged,
        payback_period=payback,
        is_viable=viable,
        warnings=tuple(warnings),
    )

    irr_label = "n/a" if results.irr is None else f"{results.irr:.2f}%"
    if not results.irr_converged:
        irr_label += " (unconverged)"
    logger.info(
        "Analysis '%s': NPV=%.0f, IRR=%s, viable=%s",
        inputs.customer_name,
        npv_value,
        irr_label,
        viable,
    )
    return results


def evaluate_scenario(
    config_path: str,
    scenario_name: Optional[str] = None,
    validation_mode: str = "strict",
) -> ScenarioResult:
    """Load, validate and analyse a single scenario file.

    Parameters
    ----------
    config_path : str
        Path to YAML/JSON scenario config.
    scenario_name : Optional[str]
        Override scenario name (default: from config or filename).
    validation_mode : str
        "strict" raises ConfigValidationError on missing/invalid fields;
        "relaxed" logs them and leaves the final say to input validation.
    """
    path_obj = Path(config_path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    config = load_scenario_config(path_obj)

    try:
        validate_config(config, config_path=str(config_path))
    except ConfigValidationError as exc:
        if validation_mode == "strict":
            raise
        logger.warning("Relaxed validation: %s", exc)

    inputs = inputs_from_config(config)
    assumptions = assumptions_from_config(config)
    results = run_analysis(inputs, assumptions)

    if scenario_name is None:
        scenario_name = config.get("scenario_name", path_obj.stem)

    return ScenarioResult(
        scenario_name=scenario_name,
        config_path=str(config_path),
        inputs=inputs,
        results=results,
        validation_mode=validation_mode,
        assumptions=assumptions.to_dict(),
        config=config,
    )


# ---------------------------------------------------------------------------
# Flattening for JSON consumers
# ---------------------------------------------------------------------------


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def results_as_dict(results: CalculationResults) -> Dict[str, Any]:
    """CalculationResults as JSON-safe primitives (Decimals become floats)."""
    return _plain(asdict(results))


def evaluate_scenario_as_dict(
    config_path: str,
    validation_mode: str = "strict",
) -> Dict[str, Any]:
    """Flat dict form of evaluate_scenario() for CLI / JSON output."""
    result = evaluate_scenario(config_path=config_path, validation_mode=validation_mode)
    return {
        "scenario_name": result.scenario_name,
        "config_path": result.config_path,
        "validation_mode": result.validation_mode,
        "inputs": _plain(asdict(result.inputs)),
        "assumptions": result.assumptions,
        "results": results_as_dict(result.results),
    }


__all__ = [
    "is_viable",
    "run_analysis",
    "evaluate_scenario",
    "results_as_dict",
    "evaluate_scenario_as_dict",
]
