"""Booking lifecycle operations: stay length, derived income, cancellation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from bnbmargins.data_access.models import TERMINAL_BOOKING_STATUSES, BookingCreate
from bnbmargins.data_access.store import STORE_ERROR, QueryResult, Store
from bnbmargins.utils.date_helpers import parse_date

logger = logging.getLogger(__name__)

DEFAULT_INCOME_CATEGORY = "Booking Revenue"


class BookingStateError(ValueError):
    """Raised when a booking cannot make the requested status transition."""


class BookingWorkflowError(RuntimeError):
    """Raised when the store rejects a step of a booking workflow."""

    def __init__(self, message: str, kind: str = STORE_ERROR) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass
class BookingWithIncome:
    booking: Dict[str, Any]
    transaction: Optional[Dict[str, Any]]


def calculate_nights(check_in: Union[date, str], check_out: Union[date, str]) -> int:
    """Whole nights between check-in and check-out.

    >>> calculate_nights("2024-01-15", "2024-01-20")
    5
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None:
        raise ValueError("Check-in and check-out dates are required")
    if end <= start:
        raise ValueError("Check-out must be after check-in")
    return (end - start).days


def calculate_total(nights: int, nightly_rate: float, custom_rate: Optional[float] = None) -> float:
    """Stay total; a custom rate overrides the property's nightly rate."""
    rate = custom_rate if custom_rate is not None else nightly_rate
    return round(rate * nights, 2)


def create_booking_with_income(
    store: Store,
    owner_id: str,
    booking: Union[BookingCreate, Mapping[str, Any]],
    category: str = DEFAULT_INCOME_CATEGORY,
) -> BookingWithIncome:
    """Create a booking and the income transaction derived from it.

    The two writes are independent. When the transaction insert fails the
    booking is kept and the orphan is logged; the returned ``transaction`` is
    None in that case.
    """
    created = store.bookings.create(booking, owner_id)
    if not created.ok:
        raise BookingWorkflowError(created.error, created.kind)
    record = created.data

    if not record.get("total_amount"):
        logger.info("Booking %s has no amount; skipping income transaction", record["id"])
        return BookingWithIncome(booking=record, transaction=None)

    income = store.transactions.create(
        {
            "property_id": record["property_id"],
            "booking_id": record["id"],
            "type": "income",
            "category": category,
            "amount": record["total_amount"],
            "description": f"Booking - {record['guest_name']} ({record['nights']} nights)",
            "date": record["check_in_date"],
        },
        owner_id,
    )
    if not income.ok:
        logger.error(
            f"Booking {record['id']} saved without its income transaction: {income.error}"
        )
        return BookingWithIncome(booking=record, transaction=None)

    return BookingWithIncome(booking=record, transaction=income.data)


def _load_open_booking(store: Store, owner_id: str, booking_id: str, target: str) -> Dict[str, Any]:
    current = store.bookings.get_by_id(booking_id, owner_id)
    if not current.ok:
        raise BookingWorkflowError(current.error, current.kind)
    status = current.data["status"]
    if status in TERMINAL_BOOKING_STATUSES:
        raise BookingStateError(f"Cannot move a {status} booking to {target}")
    return current.data


def _apply(store: Store, owner_id: str, booking_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    result: QueryResult = store.bookings.transition(booking_id, patch, owner_id)
    if not result.ok:
        raise BookingWorkflowError(result.error, result.kind)
    return result.data


def cancel_booking(
    store: Store,
    owner_id: str,
    booking_id: str,
    reason: Optional[str] = None,
    refund_amount: Optional[float] = None,
    cancellation_fee: float = 0.0,
) -> Dict[str, Any]:
    """Cancel a pending or confirmed booking.

    Args:
        reason: Free-text cancellation reason.
        refund_amount: Amount returned to the guest; defaults to the booking total.
        cancellation_fee: Fee retained by the host.

    Returns:
        The updated booking record.
    """
    booking = _load_open_booking(store, owner_id, booking_id, "cancelled")
    refund = booking["total_amount"] if refund_amount is None else refund_amount
    return _apply(
        store,
        owner_id,
        booking_id,
        {
            "status": "cancelled",
            "cancelled_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "cancellation_reason": reason,
            "refund_amount": refund,
            "cancellation_fee": cancellation_fee,
        },
    )


def complete_booking(store: Store, owner_id: str, booking_id: str) -> Dict[str, Any]:
    _load_open_booking(store, owner_id, booking_id, "completed")
    return _apply(store, owner_id, booking_id, {"status": "completed"})
