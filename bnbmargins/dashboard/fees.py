"""Airbnb host service fee models.

Under the split model the host pays 3% of booking revenue plus cleaning
fees and the guest pays the rest; under host-only the host pays 14%.
"""
from __future__ import annotations

from typing import Dict

DEFAULT_FEE_MODEL = "split"
SERVICE_FEE_CATEGORY = "Airbnb Service Fees"

FEE_RATES: Dict[str, float] = {
    "split": 0.03,
    "host-only": 0.14,
}

_DESCRIPTIONS: Dict[str, str] = {
    "split": "Split Fee Model (3%)",
    "host-only": "Host-Only Fee Model (14%)",
}


def fee_rate(model: str) -> float:
    if model not in FEE_RATES:
        raise ValueError(f"Unknown fee model: {model}")
    return FEE_RATES[model]


def fee_description(model: str) -> str:
    fee_rate(model)
    return _DESCRIPTIONS[model]


def service_fee(booking_revenue: float, cleaning_fees: float, model: str = DEFAULT_FEE_MODEL) -> float:
    """Fee withheld by the platform on one property's bookings and cleaning fees."""
    return round((booking_revenue + cleaning_fees) * fee_rate(model), 2)
