"""Date handling utilities shared by the store, reports and dashboard."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date, pd.Timestamp, str, None]

MONTH_LABEL_FORMAT = "%b %Y"


def parse_date(value: DateLike) -> Optional[date]:
    """Parse a date-like value into a ``date``.

    Returns None for empty or unparseable input; unparseable strings are
    logged as warnings so that callers can drop the row.
    """
    if value is None or value is pd.NaT or value == "":
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed = pd.to_datetime(str(value), errors="coerce")
    if pd.isna(parsed):
        logger.warning("Dropping malformed date value: %r", value)
        return None
    return parsed.date()


def safe_format_date(date_value: DateLike, format_str: str = "%b %d, %Y") -> str:
    """
    Safely format a date value to string, handling various input types.

    Args:
        date_value: datetime, date, pandas Timestamp, ISO string or None
        format_str: strftime format string (default: ``Jan 15, 2024``)

    Returns:
        Formatted date string, or empty string if invalid

    Examples:
        >>> safe_format_date('2024-01-15')
        'Jan 15, 2024'
        >>> safe_format_date(None)
        ''
    """
    parsed = parse_date(date_value)
    if parsed is None:
        return ""
    return parsed.strftime(format_str)


def format_period_label(value: DateLike) -> str:
    """Human label for a report period boundary (``Jan 1, 2024``)."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"

