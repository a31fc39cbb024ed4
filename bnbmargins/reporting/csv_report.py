"""Section-delimited CSV rendering.

Layout::

    <title>
    Period: <from> - <to>          (only when a period is set)

    TRANSACTIONS                   (only when requested and non-empty)
    Date,Property,Type,Category,Amount,Description
    ...

    PROPERTIES
    Property Name,Monthly Revenue,Monthly Expenses,Net Profit,Occupancy Rate,Avg Rating,Reviews
    ...
"""
from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from bnbmargins.reporting.models import ReportContext
from bnbmargins.utils.date_helpers import format_period_label
from bnbmargins.utils.formatting import format_plain_number

TRANSACTION_HEADER = "Date,Property,Type,Category,Amount,Description"
PROPERTY_COLUMNS = [
    "Property Name",
    "Monthly Revenue",
    "Monthly Expenses",
    "Net Profit",
    "Occupancy Rate",
    "Avg Rating",
    "Reviews",
]
PROPERTY_HEADER = ",".join(PROPERTY_COLUMNS)

_SPECIAL = (",", '"', "\n", "\r")


def quote(value: object) -> str:
    """Always quote, doubling embedded quotes."""
    return '"' + str(value).replace('"', '""') + '"'


def field(value: object) -> str:
    """Quote only when the value would otherwise break the row."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_plain_number(value)
    text = "" if value is None else str(value)
    if any(ch in text for ch in _SPECIAL):
        return quote(text)
    return text


def _join(values: Iterable[str]) -> str:
    return ",".join(values)


def _property_values(prop) -> List[str]:
    numbers = (prop.revenue, prop.expenses, prop.net_profit, prop.occupancy_rate, prop.avg_rating, prop.total_reviews)
    return [prop.name] + [format_plain_number(value) for value in numbers]


def _properties_block(context: ReportContext) -> str:
    frame = pd.DataFrame([_property_values(prop) for prop in context.properties], columns=PROPERTY_COLUMNS)
    return frame.to_csv(index=False, lineterminator="\n").rstrip("\n")


def render_csv(context: ReportContext) -> bytes:
    """Render a report context as UTF-8 CSV text."""
    descriptor = context.descriptor
    lines: List[str] = [field(descriptor.title)]
    if descriptor.has_period:
        start = format_period_label(descriptor.date_from) or "Start"
        end = format_period_label(descriptor.date_to) or "End"
        lines.append(f"Period: {start} - {end}")
    lines.append("")

    if descriptor.include_transactions and context.transactions:
        lines.append("TRANSACTIONS")
        lines.append(TRANSACTION_HEADER)
        for txn in context.transactions:
            lines.append(
                _join(
                    [
                        field(txn.date),
                        field(txn.property_name),
                        field(txn.type),
                        field(txn.category),
                        field(txn.amount),
                        quote(txn.description or ""),
                    ]
                )
            )
        lines.append("")

    if context.properties:
        lines.append("PROPERTIES")
        lines.append(_properties_block(context))

    return ("\n".join(lines) + "\n").encode("utf-8")
