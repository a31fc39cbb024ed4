"""Dashboard widget data built on the shared aggregation engine."""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from bnbmargins.dashboard.fees import (
    DEFAULT_FEE_MODEL,
    SERVICE_FEE_CATEGORY,
    fee_description,
    service_fee,
)
from bnbmargins.reporting.aggregation import (
    category_breakdown,
    compute_summary,
    month_totals,
    monthly_series,
    rollup_properties,
    transactions_frame,
)
from bnbmargins.reporting.models import PropertyRow
from bnbmargins.utils.date_helpers import parse_date

INCOME_BUCKETS = {"Booking Revenue": "bookings", "Cleaning Fees": "cleaning_fees"}
_BUCKET_NAMES = ("bookings", "cleaning_fees", "other")


def income_breakdown(df: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """Income per property split into booking revenue, cleaning fees and other income."""
    income = df.loc[df["type"] == "income"]
    if income.empty:
        return {}
    buckets = income["category"].map(INCOME_BUCKETS).fillna("other")
    table = income.groupby([income["property_name"], buckets])["amount"].sum().unstack(fill_value=0.0)
    return {
        str(name): {bucket: float(row.get(bucket, 0.0)) for bucket in _BUCKET_NAMES}
        for name, row in table.iterrows()
    }


def _property_payload(prop: PropertyRow, income: Dict[str, float], fee_model: str) -> Dict[str, Any]:
    fee = service_fee(income["bookings"], income["cleaning_fees"], fee_model)
    expenses = prop.expenses + fee
    profit = prop.revenue - expenses
    return {
        "id": prop.id,
        "name": prop.name,
        "revenue": prop.revenue,
        "income": income,
        "service_fee": fee,
        "expenses": expenses,
        "profit": profit,
        "margin": round(profit / prop.revenue * 100, 2) if prop.revenue else 0.0,
        "occupancy_rate": prop.occupancy_rate,
        "avg_rating": prop.avg_rating,
        "total_reviews": prop.total_reviews,
    }


def _booking_window(bookings: List[Mapping[str, Any]]):
    check_ins = [parse_date(b.get("check_in_date")) for b in bookings]
    check_outs = [parse_date(b.get("check_out_date")) for b in bookings]
    check_ins = [d for d in check_ins if d]
    check_outs = [d for d in check_outs if d]
    if not check_ins or not check_outs:
        return None, None
    return min(check_ins), max(check_outs) - timedelta(days=1)


def build_dashboard(
    properties: Iterable[Mapping[str, Any]],
    transactions: Iterable[Mapping[str, Any]],
    bookings: Optional[Iterable[Mapping[str, Any]]] = None,
    fee_model: str = DEFAULT_FEE_MODEL,
) -> Dict[str, Any]:
    """Totals, per-property and per-month series plus expense mix for one owner.

    Transactions must already carry ``property_name``. Occupancy is measured
    over the span covered by the owner's bookings when any exist. The Airbnb
    service fee for ``fee_model`` is charged on each property's booking
    revenue and cleaning fees and counted as an expense in the totals, the
    property rows and the expense mix; the monthly series is left as recorded.

    Raises:
        ValueError: If ``fee_model`` is not a known fee model.
    """
    description = fee_description(fee_model)
    property_list = list(properties)
    booking_list = list(bookings or [])
    df = transactions_frame(transactions)

    summary = compute_summary(df)
    date_from, date_to = _booking_window(booking_list)
    rollups = rollup_properties(
        property_list,
        df,
        bookings=booking_list if date_from else None,
        date_from=date_from,
        date_to=date_to,
    )
    months = month_totals(monthly_series(df))
    count = len(rollups)

    breakdown = income_breakdown(df)
    empty_income = {bucket: 0.0 for bucket in _BUCKET_NAMES}
    payloads = [_property_payload(p, dict(breakdown.get(p.name, empty_income)), fee_model) for p in rollups]
    fees = round(sum(p["service_fee"] for p in payloads), 2)

    expense_categories = category_breakdown(df, "expense")
    if fees:
        expense_categories[SERVICE_FEE_CATEGORY] = fees
        expense_categories = dict(sorted(expense_categories.items(), key=lambda item: item[1], reverse=True))

    expenses = summary.total_expenses + fees
    profit = summary.total_income - expenses
    return {
        "totals": {
            "revenue": summary.total_income,
            "expenses": expenses,
            "service_fees": fees,
            "profit": profit,
            "margin": round(profit / summary.total_income * 100, 2) if summary.total_income else 0.0,
            "properties": count,
            "bookings": len([b for b in booking_list if b.get("status") != "cancelled"]),
        },
        "averages": {
            "occupancy_rate": round(sum(p.occupancy_rate for p in rollups) / count, 1) if count else 0.0,
            "avg_rating": round(sum(p.avg_rating for p in rollups) / count, 2) if count else 0.0,
            "total_reviews": sum(p.total_reviews for p in rollups),
        },
        "properties": payloads,
        "monthly": [
            {"month": m.month, "revenue": m.income, "expenses": m.expenses, "profit": m.profit}
            for m in months
        ],
        "expense_categories": expense_categories,
        "fee_model": fee_model,
        "fee_description": description,
    }
