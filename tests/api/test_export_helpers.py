#!/usr/bin/env python3
"""Tests for analytics.export_helpers (frames, Excel workbook, chart).

- Frame builders: every cell the report layer sees is a display string.
- export_feasibility_workbook: four sheets that read back with pandas.
- ChartGenerator: writes a PNG into the requested output_dir.
"""

from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

from analytics import export_helpers
from analytics.contracts import FinancialInputs, PaybackPeriod
from analytics.evaluate_scenario import run_analysis
from analytics.export_helpers import (
    CASH_FLOW_SHEET,
    COGS_SHEET,
    PROFIT_LOSS_SHEET,
    SUMMARY_SHEET,
    ChartGenerator,
    ExcelExporter,
    build_cash_flow_frame,
    build_cogs_frame,
    build_profit_loss_frame,
    build_summary_frame,
    describe_payback,
    export_feasibility_workbook,
)
from finance.assumptions import FeasibilityAssumptions

M = 1_000_000


@pytest.fixture(scope="module")
def reference():
    inputs = FinancialInputs("PT Reference", 600 * M, 50 * M, 24)
    return inputs, run_analysis(inputs)


def _row(df, item):
    return df.loc[df["Item"] == item].iloc[0]


def _all_strings(df):
    return all(isinstance(v, str) for v in df.drop(columns="Item").to_numpy().ravel())


def test_summary_frame_values_are_formatted(reference):
    inputs, results = reference
    df = build_summary_frame(results, inputs)

    assert list(df.columns) == ["Item", "Value"]
    assert _row(df, "Investment Cost (BOQ)")["Value"] == "Rp 600.000.000"
    assert _row(df, "Total Revenue")["Value"] == "Rp 1.325.000.000"
    assert _row(df, "Payback Period")["Value"] == "1 years 1 months (13 months)"
    assert _row(df, "Verdict")["Value"] == "VIABLE"
    assert _row(df, "IRR")["Value"].endswith("%")
    assert _row(df, "WACC")["Value"] == "17.80%"
    assert _row(df, "Tax")["Value"] == "11.00%"
    assert _row(df, "Depreciation")["Value"] == "6 years"
    assert _all_strings(df)


def test_summary_frame_records_the_assumptions_used(reference):
    inputs, _ = reference
    assumptions = FeasibilityAssumptions(wacc=0.40, tax_rate=0.2)
    results = run_analysis(inputs, assumptions)

    df = build_summary_frame(results, inputs, assumptions)

    assert _row(df, "WACC")["Value"] == "40.00%"
    assert _row(df, "Tax")["Value"] == "20.00%"
    assert _row(df, "Verdict")["Value"] == "NOT VIABLE"


def test_profit_loss_frame_has_total_and_year_columns(reference):
    _, results = reference
    df = build_profit_loss_frame(results)

    assert list(df.columns) == ["Item", "Total"] + [f"Year {y}" for y in range(7)]
    revenue = _row(df, "Revenue")
    assert revenue["Year 0"] == "Rp 125.000.000"
    assert revenue["Year 1"] == "Rp 600.000.000"
    assert revenue["Year 3"] == "Rp 0"
    assert revenue["Total"] == "Rp 1.325.000.000"
    assert _all_strings(df)


def test_cash_flow_frame_leaves_cumulative_total_blank(reference):
    _, results = reference
    df = build_cash_flow_frame(results)

    net = _row(df, "Net Cash Flow")
    assert net["Year 0"] == "-Rp 494.312.500"
    assert net["Year 1"] == "Rp 441.537.500"
    assert net["Total"] == "Rp 125.712.500"

    cumulative = _row(df, "Cumulative Cash Flow")
    assert cumulative["Total"] == ""
    assert cumulative["Year 6"] == "Rp 125.712.500"


def test_cogs_frame(reference):
    _, results = reference
    df = build_cogs_frame(results)

    assert _row(df, "OTC COGS")["Year 0"] == "Rp 87.500.000"
    assert _row(df, "Total COGS")["Total"] == "Rp 927.500.000"
    assert _all_strings(df)


def test_describe_payback():
    assert describe_payback(None) == "n/a"
    assert describe_payback(PaybackPeriod(6, 12, 84)) == "6 years 12 months (84 months)"


def test_export_feasibility_workbook_roundtrip(tmp_path, reference):
    inputs, results = reference
    out = export_feasibility_workbook(results, inputs, tmp_path / "reports" / "feasibility.xlsx")

    assert out.exists()
    sheets = pd.read_excel(out, sheet_name=None, dtype=str, keep_default_na=False)
    assert list(sheets) == [SUMMARY_SHEET, PROFIT_LOSS_SHEET, CASH_FLOW_SHEET, COGS_SHEET]

    summary = sheets[SUMMARY_SHEET]
    assert _row(summary, "Customer Name")["Value"] == "PT Reference"
    assert _row(sheets[CASH_FLOW_SHEET], "Cumulative Cash Flow")["Total"] == ""

    wb = load_workbook(out)
    assert wb[PROFIT_LOSS_SHEET]["A1"].font.bold
    assert wb[PROFIT_LOSS_SHEET].freeze_panes == "B2"


def test_export_with_chart_embeds_image(tmp_path, reference):
    inputs, results = reference
    out = export_feasibility_workbook(
        results, inputs, tmp_path / "with_chart.xlsx", include_chart=True
    )

    assert (tmp_path / "with_chart_cash_flow.png").exists()
    wb = load_workbook(out)
    assert len(wb[CASH_FLOW_SHEET]._images) == 1


def test_export_passes_assumptions_to_summary_sheet(tmp_path, reference):
    inputs, results = reference
    out = export_feasibility_workbook(
        results, inputs, tmp_path / "custom.xlsx",
        assumptions=FeasibilityAssumptions(wacc=0.25),
    )

    summary = pd.read_excel(out, sheet_name=SUMMARY_SHEET, dtype=str, keep_default_na=False)
    assert _row(summary, "WACC")["Value"] == "25.00%"


def test_failed_export_leaves_no_partial_workbook(tmp_path, reference, monkeypatch):
    inputs, results = reference

    def _broken(results):
        raise RuntimeError("cogs frame failed")

    monkeypatch.setattr(export_helpers, "build_cogs_frame", _broken)
    out = tmp_path / "broken.xlsx"

    with pytest.raises(RuntimeError, match="cogs frame failed"):
        export_feasibility_workbook(results, inputs, out)

    assert not out.exists()


def test_excel_exporter_discard_closes_writer(tmp_path):
    exporter = ExcelExporter(tmp_path / "partial.xlsx")
    exporter.add_dataframe_sheet("Sheet", pd.DataFrame({"a": ["1"]}))

    exporter.discard()

    assert exporter._writer is None
    assert not (tmp_path / "partial.xlsx").exists()
    exporter.save()
    assert not (tmp_path / "partial.xlsx").exists()


def test_excel_exporter_writes_nothing_until_a_sheet_is_added(tmp_path):
    exporter = ExcelExporter(tmp_path / "empty.xlsx")
    exporter.autofit_all()
    exporter.save()

    assert not (tmp_path / "empty.xlsx").exists()


def test_chart_generator_writes_png(tmp_path, reference):
    _, results = reference
    cg = ChartGenerator(output_dir=str(tmp_path))

    path = cg.plot_cumulative_cash_flow(results, output_file="cf.png")

    assert Path(path).exists(), "Cash-flow chart PNG should be created"
    assert Path(path).parent == tmp_path
