import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.data_access.models import PropertyCreate  # noqa: E402
from bnbmargins.data_access.store import INVALID, NOT_FOUND, Store  # noqa: E402

OWNER = "owner-a"
OTHER_OWNER = "owner-b"


def _booking(property_id: str, **overrides) -> dict:
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


def test_rows_are_scoped_to_owner(store: Store, loft: dict) -> None:
    assert [row["name"] for row in store.properties.get_all(OWNER).data] == ["Downtown Loft"]
    assert store.properties.get_all(OTHER_OWNER).data == []

    foreign = store.properties.get_by_id(loft["id"], OTHER_OWNER)
    assert not foreign.ok
    assert foreign.kind == NOT_FOUND
    assert foreign.error == "Property not found"


def test_foreign_owner_cannot_update_or_delete(store: Store, loft: dict) -> None:
    updated = store.properties.update(loft["id"], {"name": "Hijacked"}, OTHER_OWNER)
    deleted = store.properties.delete(loft["id"], OTHER_OWNER)

    assert updated.kind == NOT_FOUND
    assert deleted.kind == NOT_FOUND
    assert store.properties.get_by_id(loft["id"], OWNER).data["name"] == "Downtown Loft"


def test_create_stamps_owner_and_accepts_models(store: Store) -> None:
    result = store.properties.create(PropertyCreate(name="Mountain Cabin", property_type="house"), OWNER)

    assert result.ok
    assert result.data["user_id"] == OWNER
    assert result.data["id"]
    assert result.data["created_at"] == result.data["updated_at"]


def test_create_rejects_mismatched_owner(store: Store) -> None:
    result = store.properties.create({"name": "Beachside Villa", "user_id": OTHER_OWNER}, OWNER)

    assert result.kind == INVALID
    assert store.properties.get_all(OWNER).data == []


def test_invalid_payload_is_reported_not_raised(store: Store) -> None:
    result = store.properties.create({"name": "", "property_type": "castle"}, OWNER)

    assert not result.ok
    assert result.kind == INVALID


def test_missing_owner_raises(store: Store) -> None:
    with pytest.raises(ValueError):
        store.properties.get_all("")


def test_booking_on_foreign_property_is_rejected(store: Store, loft: dict) -> None:
    result = store.bookings.create(_booking(loft["id"]), OTHER_OWNER)

    assert result.kind == INVALID
    assert "property_id" in result.error


def test_booking_nights_follow_dates(store: Store, loft: dict) -> None:
    booking = store.bookings.create(_booking(loft["id"]), OWNER).data
    assert booking["nights"] == 5

    moved = store.bookings.update(booking["id"], {"check_out_date": "2024-01-22"}, OWNER)
    assert moved.ok
    assert moved.data["nights"] == 7

    backwards = store.bookings.update(booking["id"], {"check_out_date": "2024-01-10"}, OWNER)
    assert backwards.kind == INVALID


def test_terminal_booking_status_is_final(store: Store, loft: dict) -> None:
    booking = store.bookings.create(_booking(loft["id"]), OWNER).data
    assert store.bookings.transition(booking["id"], {"status": "completed"}, OWNER).ok

    reopened = store.bookings.update(booking["id"], {"status": "confirmed"}, OWNER)
    assert reopened.kind == INVALID
    assert reopened.error == "Booking is already completed"

    again = store.bookings.transition(booking["id"], {"status": "cancelled"}, OWNER)
    assert again.kind == INVALID


def test_generic_update_cannot_cancel_or_complete(store: Store, loft: dict) -> None:
    booking = store.bookings.create(_booking(loft["id"]), OWNER).data

    for status in ("cancelled", "completed"):
        assert store.bookings.update(booking["id"], {"status": status}, OWNER).kind == INVALID
    details = store.bookings.update(booking["id"], {"cancellation_reason": "x", "refund_amount": 5}, OWNER)
    assert details.kind == INVALID

    stored = store.bookings.get_by_id(booking["id"], OWNER).data
    assert stored["status"] == "confirmed"
    assert stored["cancellation_reason"] is None
    assert stored["refund_amount"] is None


def test_update_rejects_null_for_required_columns(store: Store, loft: dict) -> None:
    cleared = store.properties.update(loft["id"], {"name": None}, OWNER)

    assert cleared.kind == INVALID
    assert "name" in cleared.error
    assert store.properties.get_by_id(loft["id"], OWNER).data["name"] == "Downtown Loft"
    assert store.properties.update(loft["id"], {"address": None}, OWNER).ok


def test_transaction_type_cannot_change(store: Store, loft: dict) -> None:
    txn = store.transactions.create(
        {"property_id": loft["id"], "type": "expense", "category": "Cleaning", "amount": 80, "date": "2024-01-16"},
        OWNER,
    ).data

    result = store.transactions.update(txn["id"], {"type": "income"}, OWNER)

    assert result.kind == INVALID
    assert store.transactions.get_by_id(txn["id"], OWNER).data["type"] == "expense"


def test_transactions_are_newest_first(store: Store, loft: dict) -> None:
    for day in ("2024-01-05", "2024-03-01", "2024-02-10"):
        store.transactions.create(
            {"property_id": loft["id"], "type": "income", "category": "Booking Revenue", "amount": 100, "date": day},
            OWNER,
        )

    dates = [row["date"] for row in store.transactions.get_by_property(loft["id"], OWNER).data]
    assert dates == ["2024-03-01", "2024-02-10", "2024-01-05"]


def test_deleting_property_cascades(store: Store, loft: dict) -> None:
    booking = store.bookings.create(_booking(loft["id"]), OWNER).data
    store.transactions.create(
        {"property_id": loft["id"], "booking_id": booking["id"], "type": "income",
         "category": "Booking Revenue", "amount": 1200, "date": "2024-01-15"},
        OWNER,
    )

    assert store.properties.delete(loft["id"], OWNER).data == {"id": loft["id"], "deleted": True}
    assert store.bookings.get_all(OWNER).data == []
    assert store.transactions.get_all(OWNER).data == []


def test_categories_decode_default_flag(store: Store) -> None:
    store.categories.create({"name": "Pet Fees", "type": "income", "is_default": True}, OWNER)
    store.categories.create({"name": "Snow Removal", "type": "expense", "color": "#1E40AF"}, OWNER)

    income = store.categories.get_by_type("income", OWNER).data
    assert [row["name"] for row in income] == ["Pet Fees"]
    assert income[0]["is_default"] is True

    bad_color = store.categories.create({"name": "Bad", "type": "expense", "color": "blue"}, OWNER)
    assert bad_color.kind == INVALID
