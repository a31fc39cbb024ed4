import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.data_access.maintenance import (  # noqa: E402
    DEMO_PROPERTIES,
    remove_duplicate_properties,
    seed_demo_data,
)
from bnbmargins.data_access.store import Store  # noqa: E402

OWNER = "owner-a"


def test_seed_demo_populates_empty_owner(store: Store) -> None:
    summary = seed_demo_data(store, OWNER)

    assert not summary.skipped
    assert summary.properties == len(DEMO_PROPERTIES)
    assert summary.bookings == 4
    assert summary.transactions == 4 + 8
    assert summary.categories == 16
    assert len(store.bookings.get_all(OWNER).data) == 4
    income = [row for row in store.transactions.get_all(OWNER).data if row["type"] == "income"]
    assert sum(row["amount"] for row in income) == 1200 + 960 + 2400 + 880


def test_seed_skips_owner_with_properties(store: Store, loft: dict) -> None:
    summary = seed_demo_data(store, OWNER)

    assert summary.skipped
    assert len(store.properties.get_all(OWNER).data) == 1


def test_cleanup_keeps_oldest_property_per_name(store: Store, loft: dict) -> None:
    duplicate = store.properties.create({"name": "Downtown Loft"}, OWNER).data
    store.transactions.create(
        {"property_id": duplicate["id"], "type": "expense", "category": "Cleaning", "amount": 80, "date": "2024-01-16"},
        OWNER,
    )
    store.properties.create({"name": "Mountain Cabin"}, OWNER)

    summary = remove_duplicate_properties(store, OWNER)

    assert summary.removed == [duplicate["id"]]
    names = sorted(row["name"] for row in store.properties.get_all(OWNER).data)
    assert names == ["Downtown Loft", "Mountain Cabin"]
    assert store.properties.get_by_id(loft["id"], OWNER).ok
    assert store.transactions.get_all(OWNER).data == []


def test_cleanup_breaks_timestamp_ties_by_insert_order(store: Store) -> None:
    created = [store.properties.create({"name": "Beachside Villa"}, OWNER).data for _ in range(3)]

    summary = remove_duplicate_properties(store, OWNER)

    assert summary.removed == [created[1]["id"], created[2]["id"]]
    assert [row["id"] for row in store.properties.get_all(OWNER).data] == [created[0]["id"]]
