import sys
from datetime import date
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.bookings.workflows import create_booking_with_income  # noqa: E402
from bnbmargins.data_access.store import QueryResult, Store  # noqa: E402
from bnbmargins.reporting.aggregation import EmptyDataPolicy  # noqa: E402
from bnbmargins.reporting.generator import (  # noqa: E402
    QUICK_REPORTS,
    ReportDataError,
    ReportGenerator,
    quick_report_descriptor,
    report_filename,
)
from bnbmargins.reporting.models import ReportDescriptor, ReportFormat, ReportType  # noqa: E402

OWNER = "owner-a"


def _seed(store: Store, property_id: str) -> None:
    create_booking_with_income(
        store,
        OWNER,
        {"property_id": property_id, "guest_name": "Sarah Johnson", "check_in_date": "2024-01-15",
         "check_out_date": "2024-01-20", "total_amount": 1200},
    )
    store.transactions.create(
        {"property_id": property_id, "type": "expense", "category": "Cleaning", "amount": 80,
         "description": "Professional cleaning service", "date": "2024-01-16"},
        OWNER,
    )


def test_report_filename() -> None:
    assert report_filename("Monthly P&L  Statement", ReportFormat.PDF, date(2024, 1, 31)) == (
        "Monthly_P&L_Statement_2024-01-31.pdf"
    )
    assert report_filename("Tax Summary Report", ReportFormat.EXCEL, date(2024, 4, 15)).endswith(".xlsx")


def test_report_filename_is_a_single_path_component() -> None:
    on = date(2024, 6, 30)

    assert report_filename("Q1/Q2 Report", ReportFormat.CSV, on) == "Q1_Q2_Report_2024-06-30.csv"
    assert report_filename('../../x: "draft"', ReportFormat.CSV, on) == "_.._x___draft__2024-06-30.csv"
    assert report_filename("...", ReportFormat.PDF, on) == "report_2024-06-30.pdf"


def test_quick_report_periods() -> None:
    monthly = quick_report_descriptor("monthly-pl", today=date(2024, 2, 10))
    assert monthly.type == ReportType.FINANCIAL
    assert (monthly.date_from, monthly.date_to) == (date(2024, 2, 1), date(2024, 2, 29))

    ytd = quick_report_descriptor("ytd-performance", today=date(2024, 5, 3))
    assert (ytd.date_from, ytd.date_to) == (date(2024, 1, 1), date(2024, 5, 3))
    assert ytd.format == ReportFormat.EXCEL

    assert len(QUICK_REPORTS) == 6


def test_unknown_quick_report() -> None:
    with pytest.raises(ValueError, match="Unknown quick report type: weekly"):
        quick_report_descriptor("weekly")


def test_generate_uses_owner_rows(store: Store, loft: dict) -> None:
    _seed(store, loft["id"])
    generator = ReportGenerator(store)
    descriptor = ReportDescriptor(
        title="January CSV",
        format=ReportFormat.CSV,
        date_from=date(2024, 1, 1),
        date_to=date(2024, 1, 31),
        include_transactions=True,
    )

    report = generator.generate(descriptor, OWNER)

    assert report.media_type.startswith("text/csv")
    assert report.filename.startswith("January_CSV_")
    assert not report.context.used_sample_data
    assert report.context.summary.net_profit == 1120
    text = report.content.decode("utf-8")
    assert "Booking - Sarah Johnson (5 nights)" in text
    # one 5-night booking over 31 days
    assert report.context.properties[0].occupancy_rate == 16.1


def test_empty_policy_does_not_substitute(store: Store, loft: dict) -> None:
    generator = ReportGenerator(store, policy=EmptyDataPolicy.EMPTY)
    descriptor = ReportDescriptor(title="Empty", format=ReportFormat.CSV, include_transactions=True)

    report = generator.generate(descriptor, OWNER)

    assert report.context.no_data
    assert not report.context.used_sample_data
    assert b"TRANSACTIONS" not in report.content


def test_fetch_failure_raises(store: Store, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(store.transactions, "get_all", lambda owner_id: QueryResult(error="disk I/O error"))

    with pytest.raises(ReportDataError, match="disk I/O error"):
        ReportGenerator(store).generate(ReportDescriptor(title="Broken"), OWNER)


def test_save_writes_file(store: Store, loft: dict, tmp_path: Path) -> None:
    _seed(store, loft["id"])
    generator = ReportGenerator(store)
    report = generator.generate(ReportDescriptor(title="Portfolio", format=ReportFormat.EXCEL), OWNER)

    path = generator.save(report, tmp_path / "reports")

    assert path.name == report.filename
    assert path.read_bytes() == report.content


def test_save_keeps_slashed_title_inside_directory(store: Store, loft: dict, tmp_path: Path) -> None:
    generator = ReportGenerator(store)
    report = generator.generate(ReportDescriptor(title="Q1/Q2 Report", format=ReportFormat.CSV), OWNER)

    path = generator.save(report, tmp_path / "reports")

    assert path.parent == tmp_path / "reports"
    assert path.name.startswith("Q1_Q2_Report_")
    assert path.exists()
