"""Presentation helpers for money, percentages and period-over-period deltas."""
from __future__ import annotations

import math
from typing import Union

Number = Union[int, float]


def format_currency(amount: Number) -> str:
    """Format a dollar amount as ``$1,234.56`` (negative as ``-$1,234.56``)."""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def format_percentage(value: Number, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_plain_number(value: Number) -> str:
    """Render a number without a trailing ``.0`` (1200.0 -> ``1200``)."""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(float(value))
    return str(value)


def percent_change(current: Number, previous: Number) -> float:
    """Relative change in percent; zero when there is no previous value."""
    if not previous or math.isnan(previous):
        return 0.0
    return (current - previous) / previous * 100

