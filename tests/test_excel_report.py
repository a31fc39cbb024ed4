import io
import sys
from datetime import date
from pathlib import Path

import pytest
from openpyxl import load_workbook

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.reporting.aggregation import build_context  # noqa: E402
from bnbmargins.reporting.excel_report import CURRENCY_FORMAT, PERCENT_FORMAT, render_excel  # noqa: E402
from bnbmargins.reporting.models import ReportDescriptor, ReportFormat, ReportType  # noqa: E402

ROWS = [
    {"id": "t1", "date": "2024-01-15", "property_name": "Downtown Loft", "type": "income",
     "category": "Booking Revenue", "amount": 1200, "description": "Airbnb booking - 5 nights"},
    {"id": "t2", "date": "2024-01-16", "property_name": "Downtown Loft", "type": "expense",
     "category": "Cleaning", "amount": 80, "description": "Professional cleaning service"},
]
PROPERTIES = [{"id": "p1", "name": "Downtown Loft"}]


def _workbook(**options):
    descriptor = ReportDescriptor(title="Workbook", format=ReportFormat.EXCEL, **options)
    content = render_excel(build_context(descriptor, ROWS, PROPERTIES))
    return load_workbook(io.BytesIO(content))


def test_financial_workbook_minimal_sheets() -> None:
    wb = _workbook()

    assert wb.sheetnames == ["Executive Summary", "Properties", "Monthly Performance"]
    summary = wb["Executive Summary"]
    assert summary["A1"].value == "Workbook"
    assert summary["A5"].value == "Total Revenue"
    assert summary["B5"].value == 1200
    assert summary["B5"].number_format == CURRENCY_FORMAT
    assert summary["B8"].value == pytest.approx(0.9333)
    assert summary["B8"].number_format == PERCENT_FORMAT


def test_optional_sheets_follow_flags() -> None:
    wb = _workbook(include_transactions=True, include_comparisons=True)

    assert wb.sheetnames == [
        "Executive Summary",
        "Properties",
        "Monthly Performance",
        "Transactions",
        "Period Comparison",
    ]
    transactions = wb["Transactions"]
    assert [cell.value for cell in transactions[1]] == ["Date", "Property", "Type", "Category", "Amount", "Description"]
    assert transactions["A2"].value == "2024-01-15"
    assert transactions["E2"].value == 1200


def test_properties_sheet_values() -> None:
    ws = _workbook()["Properties"]

    assert ws["A1"].value == "Property"
    assert ws["I1"].value == "Performance Score"
    assert ws["A2"].value == "Downtown Loft"
    assert ws["D2"].value == 1120
    assert ws["F2"].value == 0.75
    assert ws["F2"].number_format == PERCENT_FORMAT
    assert ws.column_dimensions["A"].width == 28


def test_tax_workbook_has_deduction_total() -> None:
    wb = _workbook(type=ReportType.TAX, date_from=date(2024, 1, 1), date_to=date(2024, 12, 31))

    assert wb.sheetnames == ["Executive Summary", "Properties", "Tax Categories"]
    ws = wb["Tax Categories"]
    last = ws.max_row
    assert ws.cell(row=last, column=1).value == "Total Deductions"
    assert ws.cell(row=last, column=3).value == 25830
    assert wb["Executive Summary"]["A3"].value == "Period: Jan 1, 2024 - Dec 31, 2024"


def test_sample_notice_when_filters_match_nothing() -> None:
    wb = _workbook(date_from=date(2030, 1, 1), date_to=date(2030, 1, 31))
    values = [cell.value for row in wb["Executive Summary"].iter_rows() for cell in row]

    assert "No records matched the selected filters; sample data is shown." in values
