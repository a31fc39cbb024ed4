"""Aggregation engine shared by generated reports and dashboard widgets.

Raw store rows go in; summary totals, per-property rollups, monthly series,
tax categories and period comparisons come out. Grouping is done with pandas.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from bnbmargins.reporting import sample_data
from bnbmargins.reporting.models import (
    PLACEHOLDER_OCCUPANCY,
    PLACEHOLDER_RATING,
    PLACEHOLDER_REVIEWS,
    ComparisonMetric,
    MonthlyBucket,
    PropertyRow,
    ReportContext,
    ReportDescriptor,
    ReportType,
    Summary,
    TaxCategory,
    TransactionRow,
)
from bnbmargins.utils.date_helpers import MONTH_LABEL_FORMAT, parse_date
from bnbmargins.utils.formatting import percent_change

logger = logging.getLogger(__name__)

COMPARISON_WINDOW = 3
TRANSACTION_COLUMNS = ["id", "date", "property_name", "type", "category", "amount", "description"]


class EmptyDataPolicy(str, Enum):
    """What to do when filtering leaves nothing to report on."""

    SAMPLE = "sample"
    EMPTY = "empty"


# ============================================================================
# Frames
# ============================================================================

def transactions_frame(rows: Iterable[Any]) -> pd.DataFrame:
    """Build a transaction frame from ``TransactionRow`` objects or mappings."""
    records = [row.__dict__ if isinstance(row, TransactionRow) else dict(row) for row in rows]
    df = pd.DataFrame(records, columns=TRANSACTION_COLUMNS)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    df["description"] = df["description"].fillna("")
    return df


def _frame_to_rows(df: pd.DataFrame) -> List[TransactionRow]:
    rows = []
    for record in df[TRANSACTION_COLUMNS].to_dict(orient="records"):
        record["date"] = str(record["date"])
        record["id"] = None if pd.isna(record["id"]) else str(record["id"])
        rows.append(TransactionRow(**record))
    return rows


# ============================================================================
# Filters
# ============================================================================

def filter_by_date_range(
    df: pd.DataFrame,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    column: str = "date",
) -> pd.DataFrame:
    """Keep rows dated within ``[date_from, date_to]``, both ends inclusive.

    The upper bound is applied as ``< date_to + 1 day`` so a whole final day
    is kept. Rows whose date cannot be parsed are dropped with a warning.
    """
    if date_from is None and date_to is None:
        return df

    parsed = pd.to_datetime(df[column], errors="coerce")
    malformed = parsed.isna()
    if malformed.any():
        logger.warning(
            "Dropping %d row(s) with malformed %s values: %s",
            int(malformed.sum()),
            column,
            df.loc[malformed, column].tolist(),
        )

    mask = ~malformed
    if date_from is not None:
        mask &= parsed >= pd.Timestamp(date_from)
    if date_to is not None:
        mask &= parsed < pd.Timestamp(date_to) + pd.Timedelta(days=1)
    return df.loc[mask].reset_index(drop=True)


def filter_by_properties(df: pd.DataFrame, names: Sequence[str], column: str = "property_name") -> pd.DataFrame:
    """Keep rows for the selected property names; an empty selection keeps all."""
    if not names:
        return df
    return df.loc[df[column].isin(list(names))].reset_index(drop=True)


# ============================================================================
# Computations
# ============================================================================

def compute_summary(df: pd.DataFrame) -> Summary:
    income = float(df.loc[df["type"] == "income", "amount"].sum())
    expenses = float(df.loc[df["type"] == "expense", "amount"].sum())
    net = income - expenses
    margin = round(net / income * 100, 2) if income else 0.0
    return Summary(
        total_income=income,
        total_expenses=expenses,
        net_profit=net,
        profit_margin=margin,
    )


def category_breakdown(df: pd.DataFrame, transaction_type: str = "expense") -> Dict[str, float]:
    """Category totals for one transaction type, largest first."""
    subset = df.loc[df["type"] == transaction_type]
    if subset.empty:
        return {}
    totals = subset.groupby("category")["amount"].sum().sort_values(ascending=False)
    return {str(category): float(amount) for category, amount in totals.items()}


def _overlap_nights(check_in: date, check_out: date, start: date, end_exclusive: date) -> int:
    first = max(check_in, start)
    last = min(check_out, end_exclusive)
    return max((last - first).days, 0)


def occupancy_from_bookings(
    bookings: Iterable[Mapping[str, Any]],
    date_from: date,
    date_to: date,
) -> float:
    """Percentage of nights in ``[date_from, date_to]`` covered by live bookings."""
    end_exclusive = date_to + timedelta(days=1)
    available = (end_exclusive - date_from).days
    if available <= 0:
        return 0.0

    booked = 0
    for booking in bookings:
        if booking.get("status") == "cancelled":
            continue
        check_in = parse_date(booking.get("check_in_date"))
        check_out = parse_date(booking.get("check_out_date"))
        if check_in is None or check_out is None:
            continue
        booked += _overlap_nights(check_in, check_out, date_from, end_exclusive)
    return round(min(booked / available * 100, 100.0), 1)


def rollup_properties(
    properties: Iterable[Mapping[str, Any]],
    df: pd.DataFrame,
    bookings: Optional[Iterable[Mapping[str, Any]]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[PropertyRow]:
    """Per-property revenue, expenses and occupancy.

    Occupancy is measured from bookings only when both booking rows and a
    closed date range are supplied; otherwise the shared placeholder is used.
    """
    totals = (
        df.groupby(["property_name", "type"])["amount"].sum().unstack(fill_value=0.0)
        if not df.empty
        else pd.DataFrame()
    )
    booking_list = list(bookings) if bookings is not None else None

    rows: List[PropertyRow] = []
    for prop in properties:
        name = prop["name"]
        revenue = float(totals.at[name, "income"]) if name in totals.index and "income" in totals else 0.0
        expenses = float(totals.at[name, "expense"]) if name in totals.index and "expense" in totals else 0.0

        occupancy = PLACEHOLDER_OCCUPANCY
        if booking_list is not None and date_from is not None and date_to is not None:
            own = [b for b in booking_list if b.get("property_id") == prop.get("id")]
            occupancy = occupancy_from_bookings(own, date_from, date_to)

        rows.append(
            PropertyRow(
                name=name,
                revenue=revenue,
                expenses=expenses,
                occupancy_rate=occupancy,
                avg_rating=prop.get("avg_rating") or PLACEHOLDER_RATING,
                total_reviews=prop.get("total_reviews") or PLACEHOLDER_REVIEWS,
                id=prop.get("id"),
            )
        )
    return rows


def monthly_series(df: pd.DataFrame) -> List[MonthlyBucket]:
    """Income and expenses grouped by (month label, property), oldest first."""
    if df.empty:
        return []

    parsed = pd.to_datetime(df["date"], errors="coerce")
    frame = df.assign(period=parsed.dt.to_period("M")).dropna(subset=["period"])
    grouped = (
        frame.groupby(["period", "property_name", "type"])["amount"]
        .sum()
        .unstack(fill_value=0.0)
        .reset_index()
        .sort_values(["period", "property_name"])
    )

    buckets = []
    for _, row in grouped.iterrows():
        buckets.append(
            MonthlyBucket(
                month=row["period"].strftime(MONTH_LABEL_FORMAT),
                property_name=row["property_name"],
                income=float(row.get("income", 0.0)),
                expenses=float(row.get("expense", 0.0)),
            )
        )
    return buckets


def month_totals(buckets: Sequence[MonthlyBucket]) -> List[MonthlyBucket]:
    """Collapse per-property buckets into one bucket per month, keeping order."""
    merged: Dict[str, MonthlyBucket] = {}
    for bucket in buckets:
        total = merged.setdefault(bucket.month, MonthlyBucket(bucket.month, "All Properties"))
        total.income += bucket.income
        total.expenses += bucket.expenses
    return list(merged.values())


def tax_categories() -> List[TaxCategory]:
    return list(sample_data.TAX_CATEGORIES)


def compare_periods(buckets: Sequence[MonthlyBucket], window: int = COMPARISON_WINDOW) -> List[ComparisonMetric]:
    """Compare the last ``window`` months against the ``window`` before them."""
    months = month_totals(buckets)
    current = months[-window:]
    previous = months[-2 * window:-window] if len(months) > window else []

    def _sum(items: Sequence[MonthlyBucket], attr: str) -> float:
        return float(sum(getattr(item, attr) for item in items))

    metrics = []
    for label, attr in (("Revenue", "income"), ("Expenses", "expenses"), ("Profit", "profit")):
        cur = _sum(current, attr)
        prev = _sum(previous, attr)
        metrics.append(ComparisonMetric(label, cur, prev, round(percent_change(cur, prev), 1)))
    return metrics


# ============================================================================
# Orchestration
# ============================================================================

def build_context(
    descriptor: ReportDescriptor,
    transactions: Iterable[Any],
    properties: Iterable[Mapping[str, Any]],
    bookings: Optional[Iterable[Mapping[str, Any]]] = None,
    monthly: Optional[Sequence[MonthlyBucket]] = None,
    policy: EmptyDataPolicy = EmptyDataPolicy.SAMPLE,
) -> ReportContext:
    """Filter raw rows per the descriptor and derive every report figure.

    Args:
        descriptor: Report request (period, property subset, flags).
        transactions: Rows carrying ``property_name`` plus transaction columns.
        properties: Property rows with at least ``name`` (and ``id`` for occupancy).
        bookings: Optional booking rows used to measure occupancy.
        monthly: Optional precomputed monthly buckets; derived when omitted.
        policy: Whether to substitute sample rows for empty filter results.
    """
    df = transactions_frame(transactions)
    df = filter_by_date_range(df, descriptor.date_from, descriptor.date_to)
    df = filter_by_properties(df, descriptor.properties)

    selected = [p for p in properties if not descriptor.properties or p["name"] in descriptor.properties]
    property_rows = rollup_properties(selected, df, bookings, descriptor.date_from, descriptor.date_to)
    transaction_rows = _frame_to_rows(df)
    buckets = list(monthly) if monthly is not None else monthly_series(df)

    no_data = not transaction_rows or not property_rows or not buckets
    used_sample = False
    if policy is EmptyDataPolicy.SAMPLE:
        if not transaction_rows:
            transaction_rows = sample_data.fallback_transactions()
            used_sample = True
        if not property_rows:
            property_rows = sample_data.fallback_properties()
            used_sample = True
        if not buckets:
            buckets = sample_data.fallback_monthly()
            used_sample = True
        if used_sample:
            logger.info("Report '%s' matched no data; using sample rows", descriptor.title)

    summary = compute_summary(transactions_frame(transaction_rows))
    return ReportContext(
        descriptor=descriptor,
        summary=summary,
        transactions=transaction_rows,
        properties=property_rows,
        monthly=buckets,
        tax_categories=tax_categories() if descriptor.type == ReportType.TAX else [],
        comparison=compare_periods(buckets) if descriptor.include_comparisons else [],
        no_data=no_data,
        used_sample_data=used_sample,
    )
