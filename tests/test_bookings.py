import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.bookings.workflows import (  # noqa: E402
    BookingStateError,
    BookingWorkflowError,
    calculate_nights,
    calculate_total,
    cancel_booking,
    complete_booking,
    create_booking_with_income,
)
from bnbmargins.data_access.store import NOT_FOUND, Store  # noqa: E402

OWNER = "owner-a"


def _stay(property_id: str, **overrides) -> dict:
    payload = {
        "property_id": property_id,
        "guest_name": "Sarah Johnson",
        "check_in_date": "2024-01-15",
        "check_out_date": "2024-01-20",
        "guests": 2,
        "total_amount": 1200,
    }
    payload.update(overrides)
    return payload


def test_calculate_nights() -> None:
    assert calculate_nights("2024-01-15", "2024-01-20") == 5
    with pytest.raises(ValueError):
        calculate_nights("2024-01-20", "2024-01-20")
    with pytest.raises(ValueError):
        calculate_nights("not a date", "2024-01-20")


def test_calculate_total_prefers_custom_rate() -> None:
    assert calculate_total(5, 150.0) == 750.0
    assert calculate_total(5, 150.0, custom_rate=125.5) == 627.5


def test_booking_creates_income_transaction(store: Store, loft: dict) -> None:
    created = create_booking_with_income(store, OWNER, _stay(loft["id"]))

    assert created.booking["nights"] == 5
    assert created.booking["status"] == "confirmed"
    txn = created.transaction
    assert txn["type"] == "income"
    assert txn["category"] == "Booking Revenue"
    assert txn["amount"] == 1200
    assert txn["date"] == "2024-01-15"
    assert txn["booking_id"] == created.booking["id"]
    assert txn["description"] == "Booking - Sarah Johnson (5 nights)"


def test_zero_amount_booking_has_no_transaction(store: Store, loft: dict) -> None:
    created = create_booking_with_income(store, OWNER, _stay(loft["id"], total_amount=0))

    assert created.transaction is None
    assert store.transactions.get_all(OWNER).data == []


def test_booking_for_unknown_property_raises(store: Store) -> None:
    with pytest.raises(BookingWorkflowError):
        create_booking_with_income(store, OWNER, _stay("missing"))


def test_cancel_defaults_refund_to_total(store: Store, loft: dict) -> None:
    booking = create_booking_with_income(store, OWNER, _stay(loft["id"])).booking

    cancelled = cancel_booking(store, OWNER, booking["id"], reason="Flight cancelled")

    assert cancelled["status"] == "cancelled"
    assert cancelled["refund_amount"] == 1200
    assert cancelled["cancellation_fee"] == 0.0
    assert cancelled["cancellation_reason"] == "Flight cancelled"
    assert cancelled["cancelled_at"].endswith("+00:00")
    assert cancelled["updated_at"].endswith("+00:00")


def test_cancel_with_partial_refund(store: Store, loft: dict) -> None:
    booking = create_booking_with_income(store, OWNER, _stay(loft["id"])).booking

    cancelled = cancel_booking(store, OWNER, booking["id"], refund_amount=900, cancellation_fee=300)

    assert cancelled["refund_amount"] == 900
    assert cancelled["cancellation_fee"] == 300


def test_terminal_bookings_reject_transitions(store: Store, loft: dict) -> None:
    booking = create_booking_with_income(store, OWNER, _stay(loft["id"])).booking
    complete_booking(store, OWNER, booking["id"])

    with pytest.raises(BookingStateError):
        cancel_booking(store, OWNER, booking["id"])
    with pytest.raises(BookingStateError):
        complete_booking(store, OWNER, booking["id"])


def test_cancel_missing_booking(store: Store) -> None:
    with pytest.raises(BookingWorkflowError) as excinfo:
        cancel_booking(store, OWNER, "missing")
    assert excinfo.value.kind == NOT_FOUND
