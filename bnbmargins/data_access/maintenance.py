"""Seeding and cleanup routines run with the privileged store client."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from bnbmargins.bookings.workflows import create_booking_with_income
from bnbmargins.data_access.models import EXPENSE_CATEGORIES, INCOME_CATEGORIES
from bnbmargins.data_access.store import QueryResult, Store

logger = logging.getLogger(__name__)

DEMO_PROPERTIES = [
    {"name": "Downtown Loft", "address": "123 Main St, Austin, TX", "property_type": "apartment",
     "bedrooms": 2, "bathrooms": 1, "max_guests": 4, "purchase_price": 320000},
    {"name": "Beachside Villa", "address": "45 Ocean Dr, Destin, FL", "property_type": "house",
     "bedrooms": 4, "bathrooms": 3, "max_guests": 8, "purchase_price": 780000},
    {"name": "Mountain Cabin", "address": "9 Pine Ridge Rd, Asheville, NC", "property_type": "house",
     "bedrooms": 3, "bathrooms": 2, "max_guests": 6, "purchase_price": 410000},
]

DEMO_BOOKINGS = {
    "Downtown Loft": [
        {"guest_name": "Sarah Johnson", "guest_email": "sarah.johnson@email.com",
         "check_in_date": "2024-01-15", "check_out_date": "2024-01-20", "guests": 2,
         "total_amount": 1200, "booking_source": "airbnb"},
        {"guest_name": "Michael Chen", "guest_email": "m.chen@email.com",
         "check_in_date": "2024-02-02", "check_out_date": "2024-02-06", "guests": 3,
         "total_amount": 960, "booking_source": "direct"},
    ],
    "Beachside Villa": [
        {"guest_name": "The Martinez Family", "guest_email": "martinez.family@email.com",
         "check_in_date": "2024-01-18", "check_out_date": "2024-01-25", "guests": 6,
         "total_amount": 2400, "booking_source": "airbnb"},
    ],
    "Mountain Cabin": [
        {"guest_name": "Emily Davis", "guest_email": "emily.davis@email.com",
         "check_in_date": "2024-02-10", "check_out_date": "2024-02-14", "guests": 2,
         "total_amount": 880, "booking_source": "vrbo"},
    ],
}

DEMO_EXPENSES = {
    "Downtown Loft": [
        ("Cleaning", 80, "Professional cleaning service", "2024-01-16"),
        ("Maintenance", 150, "Plumbing repair", "2024-01-20"),
        ("Utilities", 95, "Internet service", "2024-02-01"),
    ],
    "Beachside Villa": [
        ("Utilities", 120, "Electricity bill", "2024-01-22"),
        ("Cleaning", 140, "Turnover cleaning", "2024-01-25"),
        ("Insurance", 310, "Monthly short-term rental policy", "2024-02-01"),
    ],
    "Mountain Cabin": [
        ("Supplies", 65, "Firewood and linens", "2024-02-09"),
        ("Property Tax", 280, "Quarterly county tax", "2024-02-15"),
    ],
}


class MaintenanceError(RuntimeError):
    """Raised when a maintenance step cannot read or write the store."""


@dataclass
class SeedSummary:
    properties: int = 0
    bookings: int = 0
    transactions: int = 0
    categories: int = 0
    skipped: bool = False


@dataclass
class CleanupSummary:
    removed: List[str] = field(default_factory=list)


def _require(result: QueryResult, action: str):
    if not result.ok:
        logger.error(f"Error {action}: {result.error}")
        raise MaintenanceError(f"Error {action}: {result.error}")
    return result.data


def seed_default_categories(store: Store, owner_id: str) -> int:
    created = 0
    for category_type, names in (("income", INCOME_CATEGORIES), ("expense", EXPENSE_CATEGORIES)):
        for name in names:
            _require(
                store.categories.create({"name": name, "type": category_type, "is_default": True}, owner_id),
                f"creating category {name}",
            )
            created += 1
    return created


def seed_demo_data(store: Store, owner_id: str) -> SeedSummary:
    """Populate an empty account with demo properties, bookings and expenses.

    Accounts that already own properties are left untouched.
    """
    existing = _require(store.properties.get_all(owner_id), "fetching properties")
    if existing:
        logger.info("Owner %s already has %d properties; skipping seed", owner_id, len(existing))
        return SeedSummary(skipped=True)

    summary = SeedSummary()
    summary.categories = seed_default_categories(store, owner_id)

    ids: Dict[str, str] = {}
    for prop in DEMO_PROPERTIES:
        row = _require(store.properties.create(prop, owner_id), f"creating property {prop['name']}")
        ids[row["name"]] = row["id"]
        summary.properties += 1

    for name, bookings in DEMO_BOOKINGS.items():
        for booking in bookings:
            created = create_booking_with_income(store, owner_id, {**booking, "property_id": ids[name]})
            summary.bookings += 1
            if created.transaction:
                summary.transactions += 1

    for name, expenses in DEMO_EXPENSES.items():
        for category, amount, description, on in expenses:
            _require(
                store.transactions.create(
                    {"property_id": ids[name], "type": "expense", "category": category,
                     "amount": amount, "description": description, "date": on},
                    owner_id,
                ),
                f"creating expense for {name}",
            )
            summary.transactions += 1

    logger.info(
        "Seeded owner %s: %d properties, %d bookings, %d transactions",
        owner_id, summary.properties, summary.bookings, summary.transactions,
    )
    return summary


def remove_duplicate_properties(store: Store, owner_id: str) -> CleanupSummary:
    """Keep the oldest property of each name and delete the rest.

    Bookings and transactions of a deleted duplicate are removed with it.
    """
    properties = _require(store.properties.get_oldest_first(owner_id), "fetching properties")

    seen = set()
    summary = CleanupSummary()
    for prop in properties:
        if prop["name"] not in seen:
            seen.add(prop["name"])
            continue
        logger.info(f"Deleting duplicate property: {prop['name']} (ID: {prop['id']})")
        _require(store.properties.delete(prop["id"], owner_id), f"deleting property {prop['id']}")
        summary.removed.append(prop["id"])
    return summary
