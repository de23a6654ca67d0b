#!/usr/bin/env python3
"""
Focused unit tests for analytics.scenario_loader.
"""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from analytics.scenario_loader import (
    ScenarioConfigError,
    assumptions_from_config,
    inputs_from_config,
    load_scenario_config,
)
from finance.errors import InvalidInputError


def test_load_yaml_adds_source_breadcrumb(tmp_path):
    path = tmp_path / "base.yml"
    path.write_text("inputs:\n  customer_name: PT A\n", encoding="utf-8")

    cfg = load_scenario_config(path)

    assert cfg["inputs"]["customer_name"] == "PT A"
    assert cfg["meta"]["source_path"] == str(path)


def test_load_json(tmp_path):
    path = tmp_path / "base.json"
    path.write_text(json.dumps({"inputs": {"contract_period": 12}}), encoding="utf-8")

    assert load_scenario_config(path)["inputs"]["contract_period"] == 12


@pytest.mark.parametrize(
    "name,content",
    [("empty.yaml", ""), ("list.yaml", "- 1\n- 2\n"), ("notes.txt", "x")],
)
def test_bad_files_raise_config_error(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ScenarioConfigError):
        load_scenario_config(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scenario_config(tmp_path / "missing.yaml")


def test_inputs_from_config_parses_formatted_amounts():
    cfg = {
        "inputs": {
            "customer_name": "PT A",
            "investment_cost": "Rp 600.000.000",
            "monthly_revenue": 50_000_000,
            "contract_period": "24",
        }
    }

    inputs = inputs_from_config(cfg)

    assert inputs.investment_cost == Decimal("600000000")
    assert inputs.monthly_revenue == Decimal("50000000")
    assert inputs.contract_period == 24
    assert inputs.otc_cost == 0


def test_inputs_from_config_rejects_non_integer_period():
    with pytest.raises(ScenarioConfigError):
        inputs_from_config(
            {"inputs": {"investment_cost": 1, "monthly_revenue": 1, "contract_period": "two"}}
        )


def test_assumptions_section_must_be_mapping():
    with pytest.raises(ScenarioConfigError):
        assumptions_from_config({"assumptions": [17.8]})

    assert assumptions_from_config({}).wacc == 0.178


def _section(**overrides):
    section = {
        "customer_name": "PT A",
        "investment_cost": 600_000_000,
        "monthly_revenue": 50_000_000,
        "contract_period": 24,
    }
    section.update(overrides)
    return {"inputs": section}


def test_inputs_from_config_keeps_decimal_and_sign():
    inputs = inputs_from_config(
        _section(monthly_revenue="50000000.5", investment_cost="-600000000")
    )

    assert inputs.monthly_revenue == Decimal("50000000.5")
    assert inputs.investment_cost == Decimal("-600000000")
    with pytest.raises(InvalidInputError) as excinfo:
        inputs.validate()
    assert excinfo.value.fields == ("investment_cost",)


def test_inputs_from_config_rejects_mixed_separators():
    with pytest.raises(ScenarioConfigError):
        inputs_from_config(_section(monthly_revenue="Rp 1.234.567,50"))


@pytest.mark.parametrize("period", [24.7, True, "24.5"])
def test_inputs_from_config_rejects_fractional_or_bool_period(period):
    with pytest.raises(ScenarioConfigError):
        inputs_from_config(_section(contract_period=period))


def test_inputs_from_config_accepts_integral_float_period():
    assert inputs_from_config(_section(contract_period=24.0)).contract_period == 24
