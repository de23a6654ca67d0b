"""
Scenario configuration loader for feasibility runs.

Responsibilities:
- Load YAML / JSON scenario files.
- Perform light structural checks only (top level must be a mapping).
- Turn the ``inputs`` section into FinancialInputs and the optional
  ``assumptions`` section into FeasibilityAssumptions.

Required input fields are registered with analytics.config_schema so
analytics.schema_guard can report every missing field in one error.

Example::

    scenario_name: Base case
    inputs:
      customer_name: PT Example
      investment_cost: 600000000
      monthly_revenue: "Rp 50.000.000"   # formatted strings are accepted
      contract_period: 24
      otc_cost: 0
    assumptions:
      wacc: 17.8
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from analytics.config_schema import RequiredFieldSpec, register_required_fields
from analytics.contracts import FinancialInputs
from analytics.formatting import parse_amount
from finance.assumptions import FeasibilityAssumptions
from finance.utils import as_float, to_money

logger = logging.getLogger(__name__)


class ScenarioConfigError(ValueError):
    """Configuration-level error for scenario loading."""


# ---------------------------------------------------------------------------
# Schema registration
# ---------------------------------------------------------------------------


def _amount(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return parse_amount(value)
    v = as_float(value)
    return None if v is None else to_money(value)


def _whole_number(value: Any) -> Optional[int]:
    """int for integral numbers or digit strings; None for bools, 24.7, "two"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return None


def _positive_number(value: Any) -> bool:
    v = _amount(value)
    return v is not None and v > 0


def _non_negative_or_missing(value: Any) -> bool:
    if value is None:
        return True
    v = _amount(value)
    return v is not None and v >= 0


def _positive_int(value: Any) -> bool:
    v = _whole_number(value)
    return v is not None and v > 0


def _non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


_INPUT_SPECS = [
    RequiredFieldSpec(
        module="inputs",
        name="customer_name",
        paths=[("inputs", "customer_name"), ("customer_name",)],
        description="Customer label shown on reports",
        validator=_non_empty_text,
    ),
    RequiredFieldSpec(
        module="inputs",
        name="investment_cost",
        paths=[("inputs", "investment_cost"), ("investment_cost",)],
        description="Upfront capital outlay (capex at period 0)",
        validator=_positive_number,
    ),
    RequiredFieldSpec(
        module="inputs",
        name="monthly_revenue",
        paths=[("inputs", "monthly_revenue"), ("monthly_revenue",)],
        description="Recurring revenue per month",
        validator=_positive_number,
    ),
    RequiredFieldSpec(
        module="inputs",
        name="contract_period",
        paths=[("inputs", "contract_period"), ("contract_period",)],
        description="Contract length in months",
        validator=_positive_int,
    ),
    RequiredFieldSpec(
        module="inputs",
        name="otc_cost",
        paths=[("inputs", "otc_cost"), ("otc_cost",)],
        required=False,
        description="One-time cost, carried through to reports",
        validator=_non_negative_or_missing,
    ),
]

register_required_fields("inputs", _INPUT_SPECS)


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _load_raw_config(path: Path) -> Dict[str, Any]:
    """
    Load a raw scenario configuration from YAML or JSON.

    This function only cares that the top level is a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Scenario config not found: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in (".yml", ".yaml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ScenarioConfigError(
                f"Unsupported scenario config extension '{suffix}' for {path}"
            )

    if data is None:
        raise ScenarioConfigError(f"Empty configuration in file: {path}")

    if not isinstance(data, dict):
        raise ScenarioConfigError(
            f"Expected a mapping at top level of {path}, "
            f"got {type(data).__name__}"
        )

    return data


def _ensure_meta_source(cfg: Dict[str, Any], path: Path) -> None:
    """Attach a 'meta.source_path' breadcrumb, if not already present."""
    meta = cfg.setdefault("meta", {})
    meta.setdefault("source_path", str(path))


def _money_field(section: Dict[str, Any], key: str, default: Any = None) -> Any:
    raw = section.get(key, default)
    if raw is None:
        return None
    try:
        if isinstance(raw, str):
            return parse_amount(raw)
        return to_money(raw)
    except (TypeError, ValueError) as exc:
        raise ScenarioConfigError(f"inputs.{key} must be a number, got {raw!r}") from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_scenario_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a scenario file and tag it with its source path."""
    p = Path(path)
    cfg = _load_raw_config(p)
    _ensure_meta_source(cfg, p)
    logger.info("Loaded scenario config %s", p)
    return cfg


def inputs_from_config(cfg: Dict[str, Any]) -> FinancialInputs:
    """Build FinancialInputs from the ``inputs`` section (or the top level).

    No range checks happen here; FinancialInputs.validate() owns those.
    """
    section = cfg.get("inputs", cfg)
    if not isinstance(section, dict):
        raise ScenarioConfigError("'inputs' must be a mapping")

    period_raw = section.get("contract_period")
    period = _whole_number(period_raw)
    if period is None:
        raise ScenarioConfigError(
            f"inputs.contract_period must be a whole number of months, got {period_raw!r}"
        )

    investment = _money_field(section, "investment_cost")
    monthly = _money_field(section, "monthly_revenue")
    if investment is None or monthly is None:
        raise ScenarioConfigError(
            "inputs.investment_cost and inputs.monthly_revenue are required"
        )

    return FinancialInputs(
        customer_name=str(section.get("customer_name") or ""),
        investment_cost=investment,
        monthly_revenue=monthly,
        contract_period=period,
        otc_cost=_money_field(section, "otc_cost", 0),
    )


def assumptions_from_config(cfg: Dict[str, Any]) -> FeasibilityAssumptions:
    """FeasibilityAssumptions from the optional ``assumptions`` section."""
    section = cfg.get("assumptions")
    if section is not None and not isinstance(section, dict):
        raise ScenarioConfigError("'assumptions' must be a mapping")
    return FeasibilityAssumptions.from_mapping(section)


__all__ = [
    "ScenarioConfigError",
    "load_scenario_config",
    "inputs_from_config",
    "assumptions_from_config",
]
