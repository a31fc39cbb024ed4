import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.reporting.aggregation import build_context  # noqa: E402
from bnbmargins.reporting.csv_report import PROPERTY_HEADER, TRANSACTION_HEADER, field, render_csv  # noqa: E402
from bnbmargins.reporting.models import ReportDescriptor, ReportFormat  # noqa: E402

ROWS = [
    {"id": "t1", "date": "2024-01-15", "property_name": "Downtown Loft", "type": "income",
     "category": "Booking Revenue", "amount": 1200, "description": "Airbnb booking - 5 nights"},
    {"id": "t2", "date": "2024-01-16", "property_name": "Downtown Loft", "type": "expense",
     "category": "Cleaning", "amount": 80, "description": 'Deep clean, "move-out"'},
]
PROPERTIES = [{"id": "p1", "name": "Downtown Loft"}]


def _render(**options) -> str:
    descriptor = ReportDescriptor(title="January Statement", format=ReportFormat.CSV, **options)
    return render_csv(build_context(descriptor, ROWS, PROPERTIES)).decode("utf-8")


def test_transaction_lines_match_export_format() -> None:
    text = _render(include_transactions=True, properties=["Downtown Loft"])
    lines = text.splitlines()

    assert lines[0] == "January Statement"
    assert lines[1] == ""
    assert lines[2] == "TRANSACTIONS"
    assert lines[3] == TRANSACTION_HEADER
    assert '2024-01-15,Downtown Loft,income,Booking Revenue,1200,"Airbnb booking - 5 nights"' in lines
    assert '2024-01-16,Downtown Loft,expense,Cleaning,80,"Deep clean, ""move-out"""' in lines
    assert text.endswith("\n")


def test_property_block_and_period_line() -> None:
    text = _render(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
    lines = text.splitlines()

    assert lines[1] == "Period: Jan 1, 2024 - Jan 31, 2024"
    assert "TRANSACTIONS" not in lines
    index = lines.index("PROPERTIES")
    assert lines[index + 1] == PROPERTY_HEADER
    assert lines[index + 2] == "Downtown Loft,1200,80,1120,75,4.5,0"


def test_open_ended_period_uses_placeholders() -> None:
    lines = _render(date_from=date(2024, 1, 1)).splitlines()

    assert lines[1] == "Period: Jan 1, 2024 - End"


def test_field_quotes_only_when_needed() -> None:
    assert field("Beachside Villa") == "Beachside Villa"
    assert field("Villa, Unit 2") == '"Villa, Unit 2"'
    assert field(2400.0) == "2400"
    assert field(99.5) == "99.5"
    assert field(None) == ""


def test_property_names_with_delimiters_are_quoted() -> None:
    rows = [dict(ROWS[0], property_name='Villa, "Sea View"', amount=950.5)]
    descriptor = ReportDescriptor(title="Villas", format=ReportFormat.CSV)

    text = render_csv(build_context(descriptor, rows, [{"id": "p2", "name": 'Villa, "Sea View"'}])).decode("utf-8")

    assert text.endswith('"Villa, ""Sea View""",950.5,0,950.5,75,4.5,0\n')
