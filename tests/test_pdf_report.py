import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.reporting import charts  # noqa: E402
from bnbmargins.reporting.aggregation import build_context  # noqa: E402
from bnbmargins.reporting.models import ComparisonMetric, ReportDescriptor, ReportType  # noqa: E402
from bnbmargins.reporting.pdf_report import (  # noqa: E402
    GREEN,
    RED,
    LayoutFlow,
    ReportPDF,
    build_pdf,
    draw_bar_chart,
    draw_line_chart,
    draw_pie_chart,
    _comparison_row,
    render_pdf,
)

ROWS = [
    {"id": "t1", "date": "2024-01-15", "property_name": "Downtown Loft", "type": "income",
     "category": "Booking Revenue", "amount": 1200, "description": "Airbnb booking - 5 nights"},
    {"id": "t2", "date": "2024-01-16", "property_name": "Downtown Loft", "type": "expense",
     "category": "Cleaning", "amount": 80, "description": "Professional cleaning service"},
    {"id": "t3", "date": "2024-02-18", "property_name": "Beachside Villa", "type": "income",
     "category": "Booking Revenue", "amount": 2400, "description": "Séjour – 7 nuits"},
]
PROPERTIES = [{"id": "p1", "name": "Downtown Loft"}, {"id": "p2", "name": "Beachside Villa"}]


def _pdf() -> ReportPDF:
    pdf = ReportPDF(footer_text="test")
    pdf.add_page()
    return pdf


class RecordingPDF(ReportPDF):
    def __init__(self) -> None:
        self.texts = []
        self.text_colors = []
        super().__init__(footer_text="test")

    def cell(self, *args, **kwargs):
        self.texts.append(args[2] if len(args) > 2 else kwargs.get("text", ""))
        return super().cell(*args, **kwargs)

    def set_text_color(self, *args, **kwargs) -> None:
        self.text_colors.append(tuple(args))
        super().set_text_color(*args, **kwargs)


def _recording_pdf() -> RecordingPDF:
    pdf = RecordingPDF()
    pdf.add_page()
    pdf.texts.clear()
    pdf.text_colors.clear()
    return pdf


def test_all_zero_pie_draws_nothing() -> None:
    assert charts.pie_slices([0, 0, 0], 50, 50, 20) == []
    assert draw_pie_chart(_pdf(), ["Cleaning", "Utilities", "Supplies"], [0, 0, 0], 50, 50, 20) == 0


def test_degenerate_chart_input_is_skipped() -> None:
    pdf = _pdf()

    assert draw_bar_chart(pdf, [], [], 15, 40, 180, 40) == 0
    assert draw_bar_chart(pdf, ["A", "B"], [0, float("nan")], 15, 40, 180, 40) == 0
    assert draw_line_chart(pdf, ["Jan"], [float("inf")], 15, 40, 180, 40) == 0


def test_pie_skips_zero_slices() -> None:
    slices = charts.pie_slices([30, 0, 10], 50, 50, 20)

    assert len(slices) == 3
    assert slices[1] == []
    assert draw_pie_chart(_pdf(), ["Cleaning", "Utilities", "Supplies"], [30, 0, 10], 50, 50, 20) == 2


def test_bars_scale_to_tallest_value() -> None:
    rects = charts.bar_rects([50, 100], 0, 0, 100, 40, gap=0)

    assert [r.h for r in rects] == [20.0, 40.0]
    assert all(r.y + r.h == 40 for r in rects)


def test_layout_flow_breaks_page_when_block_does_not_fit() -> None:
    pdf = _pdf()
    flow = LayoutFlow(pdf, bottom=100)
    pdf.set_y(90)

    assert not flow.ensure(5)
    assert flow.ensure(20)
    assert pdf.page_no() == 2


def test_render_pdf_for_every_report_type() -> None:
    for report_type in ReportType:
        descriptor = ReportDescriptor(
            title=f"{report_type.value} report",
            type=report_type,
            date_from=date(2024, 1, 1),
            date_to=date(2024, 3, 31),
            include_charts=True,
            include_transactions=True,
            include_comparisons=True,
        )
        content = render_pdf(build_context(descriptor, ROWS, PROPERTIES))

        assert content.startswith(b"%PDF")


def test_long_report_spans_pages() -> None:
    rows = [
        dict(ROWS[1], id=f"x{i}", date=f"2024-01-{(i % 28) + 1:02d}", amount=10 + i)
        for i in range(120)
    ]
    descriptor = ReportDescriptor(title="Expense Analysis", include_transactions=True)
    context = build_context(descriptor, rows, PROPERTIES)

    pdf = build_pdf(context)

    assert pdf.page_no() > 1
    assert bytes(pdf.output()).startswith(b"%PDF")


def test_line_points_spread_evenly_and_scale_to_range() -> None:
    points = charts.line_points([100, 300, 200], 10, 20, 80, 40)

    assert [px for px, _ in points] == [10.0, 50.0, 90.0]
    assert [py for _, py in points] == [60.0, 20.0, 40.0]


def test_single_line_point_is_centred() -> None:
    assert charts.line_points([500], 10, 20, 80, 40) == [(50.0, 40.0)]


def test_flat_line_sits_on_mid_line() -> None:
    points = charts.line_points([7, 7, 7, 7], 0, 0, 30, 10)

    assert [px for px, _ in points] == [0.0, 10.0, 20.0, 30.0]
    assert {py for _, py in points} == {5.0}


def test_line_chart_labels_every_point() -> None:
    pdf = _recording_pdf()

    plotted = draw_line_chart(pdf, ["Jan", "Feb", "Mar"], [100, 300, 200], 20, 40, 150, 60)

    assert plotted == 3
    assert len(pdf.texts) == 6
    assert [text for text in pdf.texts if text in ("Jan", "Feb", "Mar")] == ["Jan", "Feb", "Mar"]


def test_comparison_colours_follow_metric_direction() -> None:
    cases = [
        (ComparisonMetric("Expenses", 80, 100, -20.0), GREEN, RED),
        (ComparisonMetric("Expenses", 120, 100, 20.0), RED, GREEN),
        (ComparisonMetric("Revenue", 900, 1000, -10.0), RED, GREEN),
        (ComparisonMetric("Profit", 1100, 1000, 10.0), GREEN, RED),
    ]
    for metric, expected, other in cases:
        pdf = _recording_pdf()

        _comparison_row(pdf, metric)

        assert expected in pdf.text_colors, metric
        assert other not in pdf.text_colors, metric
