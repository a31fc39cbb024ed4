"""Multi-sheet Excel workbook rendering using openpyxl."""
from __future__ import annotations

import io
import logging
from typing import Any, List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from bnbmargins.reporting.aggregation import month_totals
from bnbmargins.reporting.models import ReportContext, ReportType
from bnbmargins.utils.date_helpers import format_period_label

logger = logging.getLogger(__name__)

CURRENCY_FORMAT = "$#,##0.00"
PERCENT_FORMAT = "0.0%"
HEADER_COLOR = "2F5496"
LABEL_COLOR = "E7E6E6"
THIN = Side(style="thin")
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)

Metric = Tuple[str, Any, str]


class ExcelReportBuilder:
    """Builds the report workbook; the sheet set depends on report type and flags."""

    def __init__(self, context: ReportContext):
        self.context = context
        self.descriptor = context.descriptor

    # ------------------------------------------------------------------
    # Styling helpers
    # ------------------------------------------------------------------

    def _style_header(self, cell):
        """Apply header styling."""
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = BORDER

    def _style_data(self, cell, number_format: str = "", bold: bool = False):
        cell.border = BORDER
        if number_format:
            cell.number_format = number_format
            cell.alignment = Alignment(horizontal="right", vertical="center")
        if bold:
            cell.font = Font(bold=True)

    def _write_table(
        self,
        ws: Worksheet,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        formats: Sequence[str],
        widths: Sequence[int],
        start_row: int = 1,
    ) -> int:
        """Write a header row plus data rows; returns the next free row."""
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=start_row, column=col, value=header)
            self._style_header(cell)

        row_idx = start_row + 1
        for values in rows:
            for col, (value, fmt) in enumerate(zip(values, formats), start=1):
                self._style_data(ws.cell(row=row_idx, column=col, value=value), fmt)
            row_idx += 1

        for col, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(col)].width = width
        ws.freeze_panes = ws.cell(row=start_row + 1, column=1)
        return row_idx

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------

    def _headline_metrics(self) -> List[Metric]:
        context = self.context
        summary = context.summary
        report_type = self.descriptor.type

        if report_type == ReportType.PERFORMANCE:
            props = context.properties
            count = len(props)
            top = max(props, key=lambda p: p.performance_score).name if props else "-"
            return [
                ("Properties", count, "0"),
                ("Average Occupancy", (sum(p.occupancy_rate for p in props) / count / 100) if count else 0, PERCENT_FORMAT),
                ("Average Rating", round(sum(p.avg_rating for p in props) / count, 2) if count else 0, "0.00"),
                ("Total Reviews", sum(p.total_reviews for p in props), "0"),
                ("Net Profit", summary.net_profit, CURRENCY_FORMAT),
                ("Top Performer", top, ""),
            ]
        if report_type == ReportType.TAX:
            deductions = context.deductible_total
            return [
                ("Total Income", summary.total_income, CURRENCY_FORMAT),
                ("Total Expenses", summary.total_expenses, CURRENCY_FORMAT),
                ("Total Deductions", deductions, CURRENCY_FORMAT),
                ("Estimated Taxable Income", max(summary.total_income - deductions, 0), CURRENCY_FORMAT),
            ]
        return [
            ("Total Revenue", summary.total_income, CURRENCY_FORMAT),
            ("Total Expenses", summary.total_expenses, CURRENCY_FORMAT),
            ("Net Profit", summary.net_profit, CURRENCY_FORMAT),
            ("Profit Margin", summary.profit_margin / 100, PERCENT_FORMAT),
            ("Transactions", len(context.transactions), "0"),
        ]

    def _write_executive_summary(self, ws: Worksheet) -> None:
        descriptor = self.descriptor
        ws["A1"] = descriptor.title
        self._style_header(ws["A1"])
        ws.merge_cells("A1:B1")
        ws.row_dimensions[1].height = 25

        ws["A2"] = f"{descriptor.type.value.title()} Report"
        if descriptor.has_period:
            start = format_period_label(descriptor.date_from) or "Start"
            end = format_period_label(descriptor.date_to) or "End"
            ws["A3"] = f"Period: {start} - {end}"
        ws["B2"] = f"Generated {self.context.generated_at:%Y-%m-%d %H:%M}"

        row = 5
        for label, value, fmt in self._headline_metrics():
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"A{row}"].fill = PatternFill(start_color=LABEL_COLOR, end_color=LABEL_COLOR, fill_type="solid")
            ws[f"A{row}"].border = BORDER
            ws[f"B{row}"] = value
            self._style_data(ws[f"B{row}"], fmt)
            row += 1

        if self.context.used_sample_data:
            ws[f"A{row + 1}"] = "No records matched the selected filters; sample data is shown."
            ws[f"A{row + 1}"].font = Font(italic=True, color="808080")

        ws.column_dimensions["A"].width = 35
        ws.column_dimensions["B"].width = 25

    def _write_properties(self, ws: Worksheet) -> None:
        rows = [
            [
                p.name,
                p.revenue,
                p.expenses,
                p.net_profit,
                p.profit_margin / 100,
                p.occupancy_rate / 100,
                p.avg_rating,
                p.total_reviews,
                p.performance_score,
            ]
            for p in self.context.properties
        ]
        self._write_table(
            ws,
            ["Property", "Revenue", "Expenses", "Net Profit", "Margin", "Occupancy", "Avg Rating", "Reviews",
             "Performance Score"],
            rows,
            ["", CURRENCY_FORMAT, CURRENCY_FORMAT, CURRENCY_FORMAT, PERCENT_FORMAT, PERCENT_FORMAT, "0.0", "0",
             "0.0"],
            [28, 15, 15, 15, 12, 12, 12, 10, 18],
        )

    def _write_monthly(self, ws: Worksheet) -> None:
        rows = [[b.month, b.property_name, b.income, b.expenses, b.profit] for b in self.context.monthly]
        next_row = self._write_table(
            ws,
            ["Month", "Property", "Income", "Expenses", "Profit"],
            rows,
            ["", "", CURRENCY_FORMAT, CURRENCY_FORMAT, CURRENCY_FORMAT],
            [14, 28, 15, 15, 15],
        )
        totals = month_totals(self.context.monthly)
        if len(totals) != len(self.context.monthly):
            next_row += 1
            self._write_table(
                ws,
                ["Month", "All Properties", "Income", "Expenses", "Profit"],
                [[t.month, "", t.income, t.expenses, t.profit] for t in totals],
                ["", "", CURRENCY_FORMAT, CURRENCY_FORMAT, CURRENCY_FORMAT],
                [14, 28, 15, 15, 15],
                start_row=next_row,
            )
            ws.freeze_panes = "A2"

    def _write_transactions(self, ws: Worksheet) -> None:
        rows = [
            [t.date, t.property_name, t.type, t.category, t.amount, t.description]
            for t in self.context.transactions
        ]
        self._write_table(
            ws,
            ["Date", "Property", "Type", "Category", "Amount", "Description"],
            rows,
            ["", "", "", "", CURRENCY_FORMAT, ""],
            [12, 24, 10, 22, 14, 40],
        )

    def _write_tax_categories(self, ws: Worksheet) -> None:
        rows = [
            [item.name, item.description, item.amount, "Yes" if item.deductible else "No"]
            for item in self.context.tax_categories
        ]
        total_row = self._write_table(
            ws,
            ["Category", "Description", "Amount", "Deductible"],
            rows,
            ["", "", CURRENCY_FORMAT, ""],
            [28, 45, 15, 12],
        )
        ws.cell(row=total_row, column=1, value="Total Deductions")
        self._style_data(ws.cell(row=total_row, column=1), bold=True)
        total_cell = ws.cell(row=total_row, column=3, value=self.context.deductible_total)
        self._style_data(total_cell, CURRENCY_FORMAT, bold=True)

    def _write_comparison(self, ws: Worksheet) -> None:
        rows = [[m.metric, m.current, m.previous, m.change / 100] for m in self.context.comparison]
        self._write_table(
            ws,
            ["Metric", "Current Period", "Previous Period", "Change"],
            rows,
            ["", CURRENCY_FORMAT, CURRENCY_FORMAT, PERCENT_FORMAT],
            [20, 18, 18, 12],
        )
        for offset, metric in enumerate(self.context.comparison, start=2):
            color = "16803D" if metric.favorable else "B91C1C"
            ws.cell(row=offset, column=4).font = Font(bold=True, color=color)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self) -> Workbook:
        context = self.context
        descriptor = self.descriptor
        wb = Workbook()

        ws = wb.active
        ws.title = "Executive Summary"
        self._write_executive_summary(ws)
        self._write_properties(wb.create_sheet("Properties"))

        if descriptor.type != ReportType.TAX and context.monthly:
            self._write_monthly(wb.create_sheet("Monthly Performance"))
        if descriptor.include_transactions:
            self._write_transactions(wb.create_sheet("Transactions"))
        if descriptor.type == ReportType.TAX:
            self._write_tax_categories(wb.create_sheet("Tax Categories"))
        if descriptor.include_comparisons and context.comparison:
            self._write_comparison(wb.create_sheet("Period Comparison"))

        logger.info("Built workbook '%s' with sheets %s", descriptor.title, wb.sheetnames)
        return wb


def render_excel(context: ReportContext) -> bytes:
    """Render a report context into XLSX bytes."""
    buffer = io.BytesIO()
    ExcelReportBuilder(context).build().save(buffer)
    return buffer.getvalue()
