import json

import pytest
import yaml

import run_feasibility

REFERENCE_ARGS = [
    "--customer-name",
    "PT Reference",
    "--investment-cost",
    "600000000",
    "--monthly-revenue",
    "Rp 50.000.000",
    "--contract-period",
    "24",
]


def test_cli_runs_text(capsys):
    assert run_feasibility.main(REFERENCE_ARGS) == 0

    out = capsys.readouterr().out
    assert "Feasibility analysis: PT Reference" in out
    assert "Rp 1.325.000.000" in out
    assert "1 years 1 months (13 months)" in out
    assert "NOT VIABLE" not in out
    assert "VIABLE" in out


def test_cli_runs_json(capsys):
    run_feasibility.main(REFERENCE_ARGS + ["--format", "json"])

    obj = json.loads(capsys.readouterr().out)
    assert obj["is_viable"] is True
    assert obj["irr_converged"] is True
    assert obj["total_revenue"] == 1_325_000_000


def test_cli_wacc_override_flips_verdict(capsys):
    run_feasibility.main(REFERENCE_ARGS + ["--wacc", "40"])

    assert "NOT VIABLE" in capsys.readouterr().out


def test_cli_config_and_export(tmp_path, capsys):
    cfg = tmp_path / "base.yaml"
    cfg.write_text(
        yaml.safe_dump(
            {
                "scenario_name": "Base",
                "inputs": {
                    "customer_name": "PT Config",
                    "investment_cost": 600_000_000,
                    "monthly_revenue": 50_000_000,
                    "contract_period": 24,
                },
            }
        ),
        encoding="utf-8",
    )
    xlsx = tmp_path / "out.xlsx"

    assert run_feasibility.main(["--config", str(cfg), "--export", str(xlsx)]) == 0

    out = capsys.readouterr().out
    assert "PT Config" in out
    assert "Workbook written to" in out
    assert xlsx.exists()


def test_cli_invalid_input_exits_2():
    with pytest.raises(SystemExit) as ei:
        run_feasibility.main(
            ["--investment-cost", "0", "--monthly-revenue", "10", "--contract-period", "12"]
        )
    assert ei.value.code == 2


def test_cli_missing_inputs_exits_2():
    with pytest.raises(SystemExit) as ei:
        run_feasibility.main(["--investment-cost", "100"])
    assert ei.value.code == 2


def test_cli_invalid_format_exits_2():
    with pytest.raises(SystemExit) as ei:
        run_feasibility.parse_args(["--format", "nope"])
    assert ei.value.code in (1, 2)


def test_cli_negative_amount_exits_2(capsys):
    with pytest.raises(SystemExit) as ei:
        run_feasibility.main(
            ["--investment-cost", "-600000000", "--monthly-revenue", "50000000",
             "--contract-period", "24"]
        )
    assert ei.value.code == 2
    assert "investment_cost" in capsys.readouterr().err


def test_cli_decimal_amount_is_not_inflated(capsys):
    run_feasibility.main(
        ["--investment-cost", "600000000", "--monthly-revenue", "50000000.5",
         "--contract-period", "24"]
    )

    out = capsys.readouterr().out
    assert "Monthly revenue:  Rp 50.000.001" in out


def test_cli_garbage_amount_exits_2():
    with pytest.raises(SystemExit) as ei:
        run_feasibility.main(
            ["--investment-cost", "12abc", "--monthly-revenue", "10", "--contract-period", "12"]
        )
    assert ei.value.code == 2


def test_cli_show_schema_lists_scenario_fields(capsys):
    assert run_feasibility.main(["--show-schema"]) == 0

    out = capsys.readouterr().out
    assert "investment_cost" in out
    assert "wacc" in out
