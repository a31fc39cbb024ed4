"""PDF rendering for generated reports using fpdf2.

Layout is driven by :class:`LayoutFlow`: every block draws at the current
cursor and returns the height it consumed, and ``LayoutFlow.ensure`` is the
single place that decides when to start a new page.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Sequence, Tuple

from fpdf import FPDF

from bnbmargins.reporting import charts
from bnbmargins.reporting.aggregation import category_breakdown, month_totals, transactions_frame
from bnbmargins.reporting.models import (
    ComparisonMetric,
    PropertyRow,
    ReportContext,
    ReportDescriptor,
    ReportType,
    Summary,
    TaxCategory,
    TransactionRow,
)
from bnbmargins.utils.date_helpers import format_period_label, safe_format_date
from bnbmargins.utils.formatting import format_currency, format_percentage

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

PAGE_WIDTH = 210
LEFT = 15
CONTENT_WIDTH = PAGE_WIDTH - 2 * LEFT
PAGE_BOTTOM = 272
TOP = 15

BRAND: Color = (37, 99, 235)
HEADER_FILL: Color = (200, 220, 255)
CARD_FILL: Color = (243, 246, 252)
MUTED: Color = (100, 116, 139)
BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)
GREEN: Color = (22, 128, 61)
RED: Color = (185, 28, 28)
CHART_COLORS: List[Color] = [
    (37, 99, 235),
    (16, 185, 129),
    (245, 158, 11),
    (239, 68, 68),
    (139, 92, 246),
    (14, 165, 233),
    (236, 72, 153),
    (132, 204, 22),
]

CHART_HEIGHT = 60
ROW_HEIGHT = 7


def _text(value: object) -> str:
    """Core PDF fonts are latin-1 only."""
    return str(value).encode("latin-1", "replace").decode("latin-1")


class ReportPDF(FPDF):
    """FPDF document with a generated-at footer on every page."""

    def __init__(self, footer_text: str) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.footer_text = footer_text
        self.set_margins(LEFT, TOP, LEFT)
        self.set_auto_page_break(False)

    def footer(self) -> None:
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(*MUTED)
        self.cell(0, 10, _text(f"{self.footer_text} - Page {self.page_no()}"), 0, 0, "C")
        self.set_text_color(*BLACK)


class LayoutFlow:
    """Vertical cursor over a document with one page-break decision point."""

    def __init__(self, pdf: FPDF, bottom: float = PAGE_BOTTOM) -> None:
        self.pdf = pdf
        self.bottom = bottom

    @property
    def y(self) -> float:
        return self.pdf.get_y()

    def ensure(self, height: float) -> bool:
        """Start a new page when ``height`` no longer fits above the bottom margin."""
        if self.y + height > self.bottom:
            self.pdf.add_page()
            return True
        return False

    def place(self, height: float, block: Callable[..., float], *args) -> float:
        """Reserve ``height``, draw ``block`` at the cursor and advance past it."""
        self.ensure(height)
        top = self.y
        used = block(self.pdf, *args)
        self.pdf.set_xy(LEFT, top + used)
        return used

    def gap(self, height: float = 4) -> None:
        self.pdf.set_y(self.y + height)


# ============================================================================
# Chart primitives
# ============================================================================

def _color(index: int) -> Color:
    return CHART_COLORS[index % len(CHART_COLORS)]


def draw_bar_chart(
    pdf: FPDF,
    labels: Sequence[str],
    values: Sequence[float],
    x: float,
    y: float,
    width: float,
    height: float,
) -> int:
    """Draw a bar chart and return the number of bars drawn."""
    rects = charts.bar_rects(values, x, y, width, height)
    if not rects:
        return 0

    pdf.set_draw_color(*MUTED)
    pdf.line(x, y + height, x + width, y + height)
    pdf.set_font("Helvetica", "", 7)
    slot = width / len(values)
    drawn = 0
    for index, (label, value) in enumerate(zip(labels, values)):
        if value <= 0:
            continue
        rect = rects[drawn]
        pdf.set_fill_color(*_color(index))
        pdf.rect(rect.x, rect.y, rect.w, rect.h, style="F")
        pdf.set_xy(x + index * slot, rect.y - 4)
        pdf.cell(slot, 4, _text(format_currency(value)), 0, 0, "C")
        pdf.set_xy(x + index * slot, y + height + 1)
        pdf.cell(slot, 4, _text(label)[:18], 0, 0, "C")
        drawn += 1
    return drawn


def draw_pie_chart(
    pdf: FPDF,
    labels: Sequence[str],
    values: Sequence[float],
    cx: float,
    cy: float,
    radius: float,
) -> int:
    """Draw a pie chart with a legend; returns the number of slices drawn."""
    slices = charts.pie_slices(values, cx, cy, radius)
    if not slices:
        return 0

    total = float(sum(v for v in values if v > 0))
    legend_x = cx + radius + 10
    legend_y = cy - radius
    pdf.set_font("Helvetica", "", 8)
    drawn = 0
    for index, (label, value, triangles) in enumerate(zip(labels, values, slices)):
        if not triangles:
            continue
        color = _color(index)
        pdf.set_fill_color(*color)
        pdf.set_draw_color(*color)
        for triangle in triangles:
            pdf.polygon(triangle, style="F")
        pdf.rect(legend_x, legend_y + drawn * 6 + 1, 3, 3, style="F")
        pdf.set_xy(legend_x + 5, legend_y + drawn * 6)
        share = value / total * 100
        pdf.cell(70, 5, _text(f"{label}: {format_currency(value)} ({share:.1f}%)"), 0, 0, "L")
        drawn += 1
    pdf.set_draw_color(*BLACK)
    return drawn


def draw_line_chart(
    pdf: FPDF,
    labels: Sequence[str],
    values: Sequence[float],
    x: float,
    y: float,
    width: float,
    height: float,
) -> int:
    """Connect point-to-point segments and label each point; returns points plotted."""
    points = charts.line_points(values, x, y, width, height)
    if not points:
        return 0

    pdf.set_draw_color(*BRAND)
    pdf.set_line_width(0.6)
    for start, end in zip(points, points[1:]):
        pdf.line(start[0], start[1], end[0], end[1])
    pdf.set_line_width(0.2)

    pdf.set_font("Helvetica", "", 7)
    pdf.set_fill_color(*BRAND)
    for (px, py), label, value in zip(points, labels, values):
        pdf.rect(px - 0.8, py - 0.8, 1.6, 1.6, style="F")
        pdf.set_xy(px - 12, py - 5)
        pdf.cell(24, 4, _text(format_currency(value)), 0, 0, "C")
        pdf.set_xy(px - 12, y + height + 1)
        pdf.cell(24, 4, _text(label), 0, 0, "C")
    pdf.set_draw_color(*BLACK)
    return len(points)


# ============================================================================
# Blocks
# ============================================================================

def _header_block(pdf: FPDF, descriptor: ReportDescriptor) -> float:
    height = 36 if descriptor.has_period else 28
    top = pdf.get_y()
    pdf.set_fill_color(*BRAND)
    pdf.rect(0, top - TOP, PAGE_WIDTH, height + TOP - 4, style="F")
    pdf.set_text_color(*WHITE)
    pdf.set_font("Helvetica", "B", 18)
    pdf.set_xy(LEFT, top + 2)
    pdf.cell(CONTENT_WIDTH, 10, _text(descriptor.title), 0, 1, "L")
    pdf.set_font("Helvetica", "", 10)
    pdf.set_x(LEFT)
    pdf.cell(CONTENT_WIDTH, 6, _text(f"{descriptor.type.value.title()} Report"), 0, 1, "L")
    if descriptor.has_period:
        start = format_period_label(descriptor.date_from) or "Start"
        end = format_period_label(descriptor.date_to) or "End"
        pdf.set_x(LEFT)
        pdf.cell(CONTENT_WIDTH, 6, _text(f"Period: {start} - {end}"), 0, 1, "L")
    pdf.set_text_color(*BLACK)
    return height


def _section_title(pdf: FPDF, title: str) -> float:
    pdf.set_font("Helvetica", "B", 13)
    pdf.set_text_color(*BRAND)
    pdf.cell(0, 9, _text(title), 0, 1, "L")
    pdf.set_text_color(*BLACK)
    return 10


def _notice(pdf: FPDF, message: str) -> float:
    pdf.set_font("Helvetica", "I", 9)
    pdf.set_text_color(*MUTED)
    pdf.cell(0, 6, _text(message), 0, 1, "L")
    pdf.set_text_color(*BLACK)
    return 7


def _summary_card(pdf: FPDF, summary: Summary) -> float:
    """Revenue, expenses, profit and margin in a two-column grid."""
    top = pdf.get_y()
    col_width = CONTENT_WIDTH / 2
    cells = [
        ("Total Revenue", format_currency(summary.total_income)),
        ("Total Expenses", format_currency(summary.total_expenses)),
        ("Net Profit", format_currency(summary.net_profit)),
        ("Profit Margin", format_percentage(summary.profit_margin)),
    ]
    pdf.set_fill_color(*CARD_FILL)
    pdf.rect(LEFT, top, CONTENT_WIDTH, 40, style="F")
    for index, (label, value) in enumerate(cells):
        x = LEFT + (index % 2) * col_width + 6
        y = top + 4 + (index // 2) * 18
        pdf.set_xy(x, y)
        pdf.set_font("Helvetica", "", 9)
        pdf.set_text_color(*MUTED)
        pdf.cell(col_width - 12, 5, label, 0, 2, "L")
        pdf.set_font("Helvetica", "B", 14)
        color = RED if label == "Net Profit" and summary.net_profit < 0 else BLACK
        pdf.set_text_color(*color)
        pdf.cell(col_width - 12, 8, _text(value), 0, 0, "L")
    pdf.set_text_color(*BLACK)
    return 44


def _add_table_row(pdf: FPDF, cells: Sequence[Tuple[str, float, str]], bold: bool = False, fill: bool = False) -> float:
    pdf.set_font("Helvetica", "B" if bold else "", 9)
    if fill:
        pdf.set_fill_color(*HEADER_FILL)
    for text, width, align in cells:
        pdf.cell(width, ROW_HEIGHT, _text(text), 1, 0, align, fill)
    pdf.ln(ROW_HEIGHT)
    return ROW_HEIGHT


def _pl_card(pdf: FPDF, summary: Summary) -> float:
    used = _add_table_row(pdf, [("Profit & Loss", 120, "L"), ("Amount", 60, "R")], bold=True, fill=True)
    for label, value in (
        ("Income", summary.total_income),
        ("Expenses", summary.total_expenses),
    ):
        used += _add_table_row(pdf, [(label, 120, "L"), (format_currency(value), 60, "R")])
    used += _add_table_row(pdf, [("Net Profit", 120, "L"), (format_currency(summary.net_profit), 60, "R")], bold=True)
    return used + 4


def _property_card(pdf: FPDF, prop: PropertyRow) -> float:
    top = pdf.get_y()
    pdf.set_fill_color(*CARD_FILL)
    pdf.rect(LEFT, top, CONTENT_WIDTH, 22, style="F")
    pdf.set_xy(LEFT + 4, top + 2)
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(CONTENT_WIDTH - 8, 7, _text(prop.name), 0, 2, "L")
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(
        CONTENT_WIDTH - 8,
        5,
        _text(
            f"Revenue: {format_currency(prop.revenue)}    Expenses: {format_currency(prop.expenses)}"
            f"    Profit: {format_currency(prop.net_profit)}"
        ),
        0,
        2,
        "L",
    )
    pdf.cell(
        CONTENT_WIDTH - 8,
        5,
        _text(
            f"Occupancy: {format_percentage(prop.occupancy_rate)}    Margin: {format_percentage(prop.profit_margin)}"
            f"    Rating: {prop.avg_rating:.1f} ({prop.total_reviews} reviews)"
        ),
        0,
        0,
        "L",
    )
    return 25


def _kpi_card(pdf: FPDF, properties: Sequence[PropertyRow]) -> float:
    count = len(properties)
    avg_occupancy = sum(p.occupancy_rate for p in properties) / count if count else 0.0
    avg_rating = sum(p.avg_rating for p in properties) / count if count else 0.0
    reviews = sum(p.total_reviews for p in properties)
    used = _add_table_row(pdf, [("Key Performance Indicators", 120, "L"), ("Value", 60, "R")], bold=True, fill=True)
    for label, value in (
        ("Properties", str(count)),
        ("Average Occupancy", format_percentage(avg_occupancy)),
        ("Average Rating", f"{avg_rating:.2f}"),
        ("Total Reviews", str(reviews)),
    ):
        used += _add_table_row(pdf, [(label, 120, "L"), (value, 60, "R")])
    return used + 4


def _ranking_header(pdf: FPDF) -> float:
    return _add_table_row(
        pdf,
        [("#", 10, "C"), ("Property", 60, "L"), ("Revenue", 30, "R"), ("Profit", 30, "R"),
         ("Occupancy", 25, "R"), ("Score", 25, "R")],
        bold=True,
        fill=True,
    )


def _ranking_row(pdf: FPDF, rank: int, prop: PropertyRow) -> float:
    return _add_table_row(
        pdf,
        [(str(rank), 10, "C"), (prop.name, 60, "L"), (format_currency(prop.revenue), 30, "R"),
         (format_currency(prop.net_profit), 30, "R"), (format_percentage(prop.occupancy_rate), 25, "R"),
         (f"{prop.performance_score:.1f}", 25, "R")],
    )


def _tax_row(pdf: FPDF, item: TaxCategory) -> float:
    return _add_table_row(
        pdf, [(item.name, 60, "L"), (item.description, 85, "L"), (format_currency(item.amount), 35, "R")]
    )


def _transaction_row(pdf: FPDF, txn: TransactionRow) -> float:
    pdf.set_font("Helvetica", "", 8)
    pdf.set_text_color(*(GREEN if txn.is_income else RED))
    pdf.cell(28, 5, _text(safe_format_date(txn.date)), 0, 0, "L")
    pdf.cell(40, 5, _text(txn.property_name)[:26], 0, 0, "L")
    pdf.cell(35, 5, _text(txn.category)[:24], 0, 0, "L")
    sign = "" if txn.is_income else "-"
    pdf.cell(25, 5, _text(f"{sign}{format_currency(txn.amount)}"), 0, 0, "R")
    pdf.set_text_color(*BLACK)
    pdf.cell(52, 5, "  " + _text(txn.description)[:40], 0, 1, "L")
    return 5


def _comparison_row(pdf: FPDF, metric: ComparisonMetric) -> float:
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(60, ROW_HEIGHT, _text(metric.metric), 1, 0, "L")
    pdf.cell(45, ROW_HEIGHT, _text(format_currency(metric.current)), 1, 0, "R")
    pdf.cell(45, ROW_HEIGHT, _text(format_currency(metric.previous)), 1, 0, "R")
    pdf.set_text_color(*(GREEN if metric.favorable else RED))
    arrow = "+" if metric.change > 0 else ""
    pdf.cell(30, ROW_HEIGHT, _text(f"{arrow}{metric.change:.1f}%"), 1, 1, "R")
    pdf.set_text_color(*BLACK)
    return ROW_HEIGHT


def _chart_block(draw: Callable[..., int], title: str, labels: Sequence[str], values: Sequence[float]) -> Callable[[FPDF], float]:
    def block(pdf: FPDF) -> float:
        top = pdf.get_y()
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(0, 6, _text(title), 0, 1, "L")
        if draw is draw_pie_chart:
            radius = CHART_HEIGHT / 2 - 4
            drawn = draw(pdf, labels, values, LEFT + radius + 5, top + 8 + radius, radius)
        else:
            drawn = draw(pdf, labels, values, LEFT + 5, top + 12, CONTENT_WIDTH - 10, CHART_HEIGHT - 20)
        if not drawn:
            pdf.set_xy(LEFT, top + 7)
            _notice(pdf, "No data available for this chart.")
            return 16
        return CHART_HEIGHT + 8

    return block


# ============================================================================
# Bodies
# ============================================================================

def _financial_body(flow: LayoutFlow, context: ReportContext) -> None:
    flow.place(12, _section_title, "Profit & Loss")
    flow.place(4 * ROW_HEIGHT + 4, _pl_card, context.summary)
    if context.properties:
        flow.place(40, _section_title, "Property Performance")
        for prop in context.properties:
            flow.place(25, _property_card, prop)


def _performance_body(flow: LayoutFlow, context: ReportContext) -> None:
    flow.place(12, _section_title, "Portfolio KPIs")
    flow.place(5 * ROW_HEIGHT + 4, _kpi_card, context.properties)
    flow.place(12 + 2 * ROW_HEIGHT, _section_title, "Property Ranking")
    flow.place(ROW_HEIGHT, _ranking_header)
    ranked = sorted(context.properties, key=lambda p: p.net_profit, reverse=True)
    for rank, prop in enumerate(ranked, start=1):
        if flow.ensure(ROW_HEIGHT):
            flow.place(ROW_HEIGHT, _ranking_header)
        flow.place(ROW_HEIGHT, _ranking_row, rank, prop)


def _tax_body(flow: LayoutFlow, context: ReportContext) -> None:
    summary = context.summary
    flow.place(12, _section_title, "Income Summary")
    flow.place(4 * ROW_HEIGHT + 4, _pl_card, summary)
    flow.place(12 + 2 * ROW_HEIGHT, _section_title, "Deductible Expenses")
    deductible = [item for item in context.tax_categories if item.deductible]
    for item in deductible:
        flow.place(ROW_HEIGHT, _tax_row, item)
    flow.place(
        ROW_HEIGHT,
        lambda pdf: _add_table_row(
            pdf, [("Total Deductions", 145, "L"), (format_currency(context.deductible_total), 35, "R")],
            bold=True, fill=True,
        ),
    )
    flow.gap()


BODIES = {
    ReportType.FINANCIAL: _financial_body,
    ReportType.PERFORMANCE: _performance_body,
    ReportType.TAX: _tax_body,
    ReportType.CUSTOM: _financial_body,
}


def _charts(flow: LayoutFlow, context: ReportContext) -> None:
    flow.place(CHART_HEIGHT + 20, _section_title, "Charts")
    if context.descriptor.type == ReportType.TAX:
        deductible = [item for item in context.tax_categories if item.deductible]
        flow.place(
            CHART_HEIGHT + 8,
            _chart_block(draw_pie_chart, "Deductions by Category",
                         [i.name for i in deductible], [i.amount for i in deductible]),
        )
        return

    flow.place(
        CHART_HEIGHT + 8,
        _chart_block(draw_bar_chart, "Revenue by Property",
                     [p.name for p in context.properties], [p.revenue for p in context.properties]),
    )
    breakdown = category_breakdown(transactions_frame(context.transactions))
    flow.place(
        CHART_HEIGHT + 8,
        _chart_block(draw_pie_chart, "Expenses by Category", list(breakdown), list(breakdown.values())),
    )
    months = month_totals(context.monthly)
    flow.place(
        CHART_HEIGHT + 8,
        _chart_block(draw_line_chart, "Monthly Net Profit", [m.month for m in months], [m.profit for m in months]),
    )


def _transactions(flow: LayoutFlow, transactions: Sequence[TransactionRow]) -> None:
    flow.place(20, _section_title, "Transaction Details")
    for txn in transactions:
        flow.place(5, _transaction_row, txn)
    flow.gap()


def _comparison(flow: LayoutFlow, comparison: Sequence[ComparisonMetric]) -> None:
    flow.place(12 + 4 * ROW_HEIGHT, _section_title, "Period Comparison (last 3 months vs prior 3)")
    flow.place(
        ROW_HEIGHT,
        lambda pdf: _add_table_row(
            pdf, [("Metric", 60, "L"), ("Current", 45, "R"), ("Previous", 45, "R"), ("Change", 30, "R")],
            bold=True, fill=True,
        ),
    )
    for metric in comparison:
        flow.place(ROW_HEIGHT, _comparison_row, metric)


def build_pdf(context: ReportContext) -> ReportPDF:
    """Lay out every section of the report on a fresh document."""
    descriptor = context.descriptor
    pdf = ReportPDF(footer_text=f"Generated {context.generated_at:%b %d, %Y %H:%M}")
    pdf.add_page()
    flow = LayoutFlow(pdf)

    flow.place(36, _header_block, descriptor)
    flow.gap()
    if context.used_sample_data:
        flow.place(7, _notice, "No records matched the selected filters; sample data is shown.")
    flow.place(12, _section_title, "Executive Summary")
    flow.place(44, _summary_card, context.summary)
    flow.gap()

    BODIES[descriptor.type](flow, context)

    if descriptor.include_charts:
        _charts(flow, context)
    if descriptor.include_transactions and context.transactions:
        _transactions(flow, context.transactions)
    if descriptor.include_comparisons and context.comparison:
        _comparison(flow, context.comparison)

    logger.info("Rendered PDF report '%s' (%d pages)", descriptor.title, pdf.page_no())
    return pdf


def render_pdf(context: ReportContext) -> bytes:
    """Render a report context into PDF bytes."""
    return bytes(build_pdf(context).output())
