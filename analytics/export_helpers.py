from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import pandas as pd
from openpyxl.drawing.image import Image as XLImage
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from analytics.contracts import CalculationResults, FinancialInputs, PaybackPeriod
from analytics.formatting import format_currency, format_percentage
from finance.assumptions import DEFAULT_ASSUMPTIONS, FeasibilityAssumptions

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SUMMARY_SHEET = "Input & Summary"
PROFIT_LOSS_SHEET = "Profit & Loss"
CASH_FLOW_SHEET = "Cash Flow"
COGS_SHEET = "COGS"


# =====================================================================
# Frame builders (every numeric cell is a formatted string)
# =====================================================================


def describe_payback(payback: Optional[PaybackPeriod]) -> str:
    if payback is None:
        return "n/a"
    return f"{payback.years} years {payback.months} months ({payback.total_months} months)"


def _rate_text(value: float) -> str:
    return format_percentage(value * 100)


def build_summary_frame(
    results: CalculationResults,
    inputs: FinancialInputs,
    assumptions: Optional[FeasibilityAssumptions] = None,
) -> pd.DataFrame:
    """Two-column Item/Value frame: inputs, assumptions, headline results."""
    assumptions = assumptions or DEFAULT_ASSUMPTIONS
    irr_text = "n/a" if results.irr is None else format_percentage(results.irr)
    if results.irr is not None and not results.irr_converged:
        irr_text += " (unconverged)"

    rows: List[Tuple[str, str]] = [
        ("INPUTS", ""),
        ("Customer Name", inputs.customer_name),
        ("Investment Cost (BOQ)", format_currency(inputs.investment_cost)),
        ("Monthly Revenue", format_currency(inputs.monthly_revenue)),
        ("Contract Period", f"{inputs.contract_period} months"),
        ("OTC Cost", format_currency(inputs.otc_cost)),
        ("", ""),
        ("ASSUMPTIONS", ""),
        ("WACC", _rate_text(assumptions.wacc)),
        ("Tax", _rate_text(assumptions.tax_rate)),
        ("Bad Debt", _rate_text(assumptions.bad_debt_rate)),
        ("Marketing (of revenue)", _rate_text(assumptions.marketing_rate)),
        ("Operational (of investment)", _rate_text(assumptions.operational_rate)),
        ("COGS", _rate_text(assumptions.cogs_rate)),
        ("OTC Multiplier", f"{assumptions.otc_multiplier:g}x monthly revenue"),
        ("Depreciation", f"{assumptions.depreciation_years} years"),
        ("", ""),
        ("RESULTS", ""),
        ("Total Revenue", format_currency(results.total_revenue)),
        ("OTC Revenue", format_currency(results.otc_revenue)),
        ("Monthly Total", format_currency(results.monthly_total)),
        ("Total COGS", format_currency(results.total_cogs)),
        ("Cost IBL", format_currency(results.cost_ibl)),
        ("Cost OBL", format_currency(results.cost_obl)),
        ("Marketing Cost", format_currency(results.marketing_cost)),
        ("Operational Cost", format_currency(results.operational_cost)),
        ("Total OPEX", format_currency(results.total_opex)),
        ("NPV", format_currency(results.npv)),
        ("IRR", irr_text),
        ("Payback Period", describe_payback(results.payback_period)),
        ("Verdict", "VIABLE" if results.is_viable else "NOT VIABLE"),
    ]
    return pd.DataFrame(rows, columns=["Item", "Value"])


def _period_frame(
    items: Sequence[Tuple[str, Callable[[Any], Any], bool]],
    projections: Sequence[Any],
) -> pd.DataFrame:
    """Rows of ``items`` x columns Total, Year 0..N.

    Each item is (label, getter, show_total).
    """
    year_cols = [f"Year {p.year}" for p in projections]
    records = []
    for label, getter, show_total in items:
        values = [getter(p) for p in projections]
        record = {"Item": label, "Total": format_currency(sum(values)) if show_total else ""}
        record.update({col: format_currency(v) for col, v in zip(year_cols, values)})
        records.append(record)
    return pd.DataFrame(records, columns=["Item", "Total", *year_cols])


def build_profit_loss_frame(results: CalculationResults) -> pd.DataFrame:
    return _period_frame(
        [
            ("Revenue", lambda p: p.revenue, True),
            ("Bad Debt", lambda p: p.bad_debt, True),
            ("OPEX", lambda p: p.opex, True),
            ("EBITDA", lambda p: p.ebitda, True),
            ("Depreciation", lambda p: p.depreciation, True),
            ("EBIT", lambda p: p.ebit, True),
            ("Tax", lambda p: p.tax, True),
            ("Net Income", lambda p: p.net_income, True),
        ],
        results.yearly_projections,
    )


def build_cash_flow_frame(results: CalculationResults) -> pd.DataFrame:
    return _period_frame(
        [
            ("Net Income", lambda p: p.net_income, True),
            ("Add Back Depreciation", lambda p: p.add_back_depreciation, True),
            ("Total Cash Inflow", lambda p: p.total_cash_inflow, True),
            ("CAPEX", lambda p: p.capex, True),
            ("Net Cash Flow", lambda p: p.net_cash_flow, True),
            # A running total has no meaningful sum
            ("Cumulative Cash Flow", lambda p: p.cumulative_cash_flow, False),
        ],
        results.cash_flow_projections,
    )


def build_cogs_frame(results: CalculationResults) -> pd.DataFrame:
    return _period_frame(
        [
            ("OTC COGS", lambda p: p.otc_cogs, True),
            ("Monthly COGS", lambda p: p.monthly_cogs, True),
            ("Total COGS", lambda p: p.total_cogs, True),
        ],
        results.cogs_projections,
    )


# =====================================================================
# Excel export helpers
# =====================================================================


@dataclass
class ExcelExporter:
    """Writes DataFrames to an .xlsx workbook via pandas + openpyxl.

    The writer is created lazily so no empty file appears if nothing is
    written. Call :meth:`save` once all sheets are added.
    """

    output_path: Path

    def __init__(self, output_path: PathLike) -> None:
        self.output_path = Path(output_path)
        self._writer: Optional[pd.ExcelWriter] = None

    def _ensure_writer(self) -> pd.ExcelWriter:
        if self._writer is None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = pd.ExcelWriter(self.output_path, engine="openpyxl")
        return self._writer

    def save(self) -> None:
        """Persist the workbook to disk. Safe to call more than once."""
        if self._writer is not None:
            self._writer.close()
            self._writer = None
            logger.info("ExcelExporter: wrote workbook to %s", self.output_path)

    def discard(self) -> None:
        """Close the writer and remove the partial workbook, if any."""
        if self._writer is None:
            return
        try:
            self._writer.close()
        finally:
            self._writer = None
            self.output_path.unlink(missing_ok=True)
            logger.warning("ExcelExporter: discarded partial workbook %s", self.output_path)

    def add_dataframe_sheet(
        self,
        sheet_name: str,
        df: pd.DataFrame,
        freeze_panes: Optional[str] = None,
        format_headers: bool = True,
    ) -> None:
        """Write ``df`` to ``sheet_name``, bolding the header row."""
        writer = self._ensure_writer()
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]

        if format_headers:
            for cell in ws[1]:
                cell.font = Font(bold=True)

        if freeze_panes:
            ws.freeze_panes = freeze_panes

    def add_chart_image(
        self,
        sheet_name: str,
        image_path: PathLike,
        cell: str = "D2",
    ) -> None:
        """Embed an existing PNG into a sheet that has already been written."""
        if self._writer is None or sheet_name not in self._writer.sheets:
            logger.debug("ExcelExporter: sheet %s not written; image skipped", sheet_name)
            return
        ws = self._writer.sheets[sheet_name]
        ws.add_image(XLImage(str(image_path)), cell)

    def autofit_all(self) -> None:
        """Column widths from the longest value in each column."""
        if self._writer is None:
            return

        for ws in self._writer.book.worksheets:
            for column_cells in ws.columns:
                max_length = max(
                    (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                    default=0,
                )
                col_letter = get_column_letter(column_cells[0].column)
                ws.column_dimensions[col_letter].width = max_length + 2


# =====================================================================
# Chart export
# =====================================================================


class ChartGenerator:
    """PNG charts for feasibility results, usable without a workbook."""

    def __init__(self, output_dir: PathLike) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, output_file: PathLike) -> Path:
        path = Path(output_file)
        if not path.is_absolute():
            path = self.output_dir / path
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def plot_cumulative_cash_flow(
        self,
        results: CalculationResults,
        output_file: PathLike = "cumulative_cash_flow.png",
    ) -> Path:
        """Bar chart of net cash flow with the cumulative line on top."""
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        path = self._resolve_path(output_file)
        rows = results.cash_flow_projections
        years = [r.year for r in rows]

        fig, ax = plt.subplots()
        ax.bar(years, [float(r.net_cash_flow) for r in rows], label="Net cash flow")
        ax.plot(
            years,
            [float(r.cumulative_cash_flow) for r in rows],
            marker="o",
            color="black",
            label="Cumulative",
        )
        ax.axhline(0.0, linestyle="--", linewidth=1)
        ax.set_xlabel("Year")
        ax.set_ylabel("Cash flow")
        ax.set_title("Cash flow and payback")
        ax.legend()
        fig.tight_layout()
        fig.savefig(path, dpi=150)
        plt.close(fig)

        logger.info("ChartGenerator: cash-flow chart written to %s", path)
        return path


# =====================================================================
# Workbook entrypoint
# =====================================================================


def export_feasibility_workbook(
    results: CalculationResults,
    inputs: FinancialInputs,
    output_path: PathLike,
    include_chart: bool = False,
    assumptions: Optional[FeasibilityAssumptions] = None,
) -> Path:
    """Write the four-sheet feasibility workbook and return its path.

    Sheets: Input & Summary, Profit & Loss, Cash Flow, COGS. With
    ``include_chart`` a cash-flow chart is embedded on the Cash Flow sheet.
    If any step fails the partial workbook is removed and the error re-raised.
    """
    exporter = ExcelExporter(output_path)
    try:
        exporter.add_dataframe_sheet(
            SUMMARY_SHEET, build_summary_frame(results, inputs, assumptions)
        )
        exporter.add_dataframe_sheet(
            PROFIT_LOSS_SHEET, build_profit_loss_frame(results), freeze_panes="B2"
        )
        exporter.add_dataframe_sheet(
            CASH_FLOW_SHEET, build_cash_flow_frame(results), freeze_panes="B2"
        )
        exporter.add_dataframe_sheet(
            COGS_SHEET, build_cogs_frame(results), freeze_panes="B2"
        )

        if include_chart:
            chart_path = ChartGenerator(
                exporter.output_path.parent
            ).plot_cumulative_cash_flow(
                results, output_file=f"{exporter.output_path.stem}_cash_flow.png"
            )
            exporter.add_chart_image(CASH_FLOW_SHEET, chart_path, cell="B10")

        exporter.autofit_all()
    except Exception:
        exporter.discard()
        raise

    exporter.save()
    return exporter.output_path


__all__ = [
    "ExcelExporter",
    "ChartGenerator",
    "build_summary_frame",
    "build_profit_loss_frame",
    "build_cash_flow_frame",
    "build_cogs_frame",
    "describe_payback",
    "export_feasibility_workbook",
]
