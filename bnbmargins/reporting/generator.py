"""Report orchestration: descriptor -> store fetch -> aggregation -> file payload."""
from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from bnbmargins.data_access.store import Store
from bnbmargins.reporting.aggregation import EmptyDataPolicy, build_context
from bnbmargins.reporting.csv_report import render_csv
from bnbmargins.reporting.excel_report import render_excel
from bnbmargins.reporting.models import (
    FORMAT_EXTENSIONS,
    FORMAT_MEDIA_TYPES,
    ReportContext,
    ReportDescriptor,
    ReportFormat,
    ReportType,
)
from bnbmargins.reporting.pdf_report import render_pdf

logger = logging.getLogger(__name__)

RENDERERS: Dict[ReportFormat, Callable[[ReportContext], bytes]] = {
    ReportFormat.PDF: render_pdf,
    ReportFormat.EXCEL: render_excel,
    ReportFormat.CSV: render_csv,
}


class ReportDataError(RuntimeError):
    """Raised when report source rows cannot be loaded from the store."""


@dataclass
class GeneratedReport:
    filename: str
    content: bytes
    media_type: str
    context: ReportContext


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]')


def report_filename(title: str, fmt: ReportFormat, on: Optional[date] = None) -> str:
    """``Monthly P&L Statement`` -> ``Monthly_P&L_Statement_2024-01-31.pdf``.

    Path separators and characters that file systems reject become
    underscores, so the name is always a single path component.
    """
    stamp = (on or date.today()).isoformat()
    stem = _UNSAFE_FILENAME_CHARS.sub("_", re.sub(r"\s+", "_", title)).lstrip(".") or "report"
    return f"{stem}_{stamp}.{FORMAT_EXTENSIONS[fmt]}"


# ============================================================================
# Quick reports
# ============================================================================

def _month_bounds(today: date):
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def _year_to_date(today: date):
    return date(today.year, 1, 1), today


QUICK_REPORTS: Dict[str, Dict[str, Any]] = {
    "monthly-pl": dict(
        type=ReportType.FINANCIAL, title="Monthly P&L Statement", period=_month_bounds,
        format=ReportFormat.PDF, include_charts=True, include_transactions=True, include_comparisons=False,
    ),
    "ytd-performance": dict(
        type=ReportType.PERFORMANCE, title="Year-to-Date Performance Report", period=_year_to_date,
        format=ReportFormat.EXCEL, include_charts=True, include_transactions=False, include_comparisons=True,
    ),
    "tax-summary": dict(
        type=ReportType.TAX, title="Tax Summary Report", period=_year_to_date,
        format=ReportFormat.EXCEL, include_charts=False, include_transactions=True, include_comparisons=False,
    ),
    "property-comparison": dict(
        type=ReportType.PERFORMANCE, title="Property Comparison Report", period=_month_bounds,
        format=ReportFormat.PDF, include_charts=True, include_transactions=False, include_comparisons=True,
    ),
    "occupancy-report": dict(
        type=ReportType.PERFORMANCE, title="Occupancy Report", period=_month_bounds,
        format=ReportFormat.EXCEL, include_charts=True, include_transactions=False, include_comparisons=False,
    ),
    "expense-analysis": dict(
        type=ReportType.FINANCIAL, title="Expense Analysis Report", period=_month_bounds,
        format=ReportFormat.PDF, include_charts=True, include_transactions=True, include_comparisons=False,
    ),
}


def quick_report_descriptor(kind: str, today: Optional[date] = None) -> ReportDescriptor:
    """Descriptor for a named preset; unknown names raise ``ValueError``."""
    preset = QUICK_REPORTS.get(kind)
    if preset is None:
        raise ValueError(f"Unknown quick report type: {kind}")
    options = dict(preset)
    date_from, date_to = options.pop("period")(today or date.today())
    return ReportDescriptor(date_from=date_from, date_to=date_to, **options)


# ============================================================================
# Generator
# ============================================================================

class ReportGenerator:
    """Generate downloadable reports for one owner's data."""

    def __init__(self, store: Store, policy: EmptyDataPolicy = EmptyDataPolicy.SAMPLE):
        self.store = store
        self.policy = policy

    def _fetch(self, owner_id: str):
        results = {
            "properties": self.store.properties.get_all(owner_id),
            "transactions": self.store.transactions.get_all(owner_id),
            "bookings": self.store.bookings.get_all(owner_id),
        }
        for name, result in results.items():
            if not result.ok:
                logger.error(f"Failed to load {name} for report: {result.error}")
                raise ReportDataError(f"Could not load {name}: {result.error}")
        return results["properties"].data, results["transactions"].data, results["bookings"].data

    def load_context(self, descriptor: ReportDescriptor, owner_id: str) -> ReportContext:
        properties, transactions, bookings = self._fetch(owner_id)
        names = {prop["id"]: prop["name"] for prop in properties}
        rows: List[Dict[str, Any]] = [
            {**txn, "property_name": names.get(txn["property_id"], "Unknown Property")}
            for txn in transactions
        ]
        return build_context(descriptor, rows, properties, bookings=bookings, policy=self.policy)

    def generate(self, descriptor: ReportDescriptor, owner_id: str) -> GeneratedReport:
        context = self.load_context(descriptor, owner_id)
        return self.render(context)

    def render(self, context: ReportContext) -> GeneratedReport:
        descriptor = context.descriptor
        content = RENDERERS[descriptor.format](context)
        filename = report_filename(descriptor.title, descriptor.format, context.generated_at.date())
        logger.info(
            "Generated %s report '%s' (%d bytes, sample data: %s)",
            descriptor.format.value,
            descriptor.title,
            len(content),
            context.used_sample_data,
        )
        return GeneratedReport(filename, content, FORMAT_MEDIA_TYPES[descriptor.format], context)

    def generate_quick(self, kind: str, owner_id: str, today: Optional[date] = None) -> GeneratedReport:
        return self.generate(quick_report_descriptor(kind, today), owner_id)

    @staticmethod
    def save(report: GeneratedReport, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / Path(report.filename).name
        path.write_bytes(report.content)
        logger.info("Saved report to %s", path)
        return path
