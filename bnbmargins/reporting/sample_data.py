"""Built-in demo rows used when a report filters down to nothing."""
from __future__ import annotations

from typing import List

from bnbmargins.reporting.models import MonthlyBucket, PropertyRow, TaxCategory, TransactionRow

SAMPLE_TRANSACTIONS: List[TransactionRow] = [
    TransactionRow("2024-01-15", "Downtown Loft", "income", "Booking Revenue", 1200, "Airbnb booking - 5 nights", "1"),
    TransactionRow("2024-01-16", "Downtown Loft", "expense", "Cleaning", 80, "Professional cleaning service", "2"),
    TransactionRow("2024-01-18", "Beachside Villa", "income", "Booking Revenue", 2400, "Airbnb booking - 7 nights", "3"),
    TransactionRow("2024-01-20", "Downtown Loft", "expense", "Maintenance", 150, "Plumbing repair", "4"),
    TransactionRow("2024-01-22", "Beachside Villa", "expense", "Utilities", 120, "Electricity bill", "5"),
]

SAMPLE_PROPERTIES: List[PropertyRow] = [
    PropertyRow("Downtown Loft", 2800, 1900, 85, 4.9, 32, "1"),
    PropertyRow("Beachside Villa", 4200, 2100, 92, 4.8, 45, "2"),
    PropertyRow("Mountain Cabin", 1800, 1200, 78, 4.7, 28, "3"),
]

SAMPLE_MONTHLY: List[MonthlyBucket] = [
    MonthlyBucket("Jan 2024", "Downtown Loft", 2650, 1780),
    MonthlyBucket("Feb 2024", "Downtown Loft", 2400, 1850),
    MonthlyBucket("Mar 2024", "Downtown Loft", 2950, 1820),
    MonthlyBucket("Apr 2024", "Downtown Loft", 3100, 1900),
    MonthlyBucket("May 2024", "Downtown Loft", 3300, 1950),
    MonthlyBucket("Jun 2024", "Downtown Loft", 3600, 2010),
    MonthlyBucket("Jan 2024", "Beachside Villa", 3900, 2050),
    MonthlyBucket("Feb 2024", "Beachside Villa", 3700, 2000),
]

# Fixed slice sizes substituted for empty filter results.
FALLBACK_TRANSACTIONS = 3
FALLBACK_PROPERTIES = 2
FALLBACK_MONTHS = 6

TAX_CATEGORIES: List[TaxCategory] = [
    TaxCategory("Mortgage Interest", 9600, True, "Interest on loans secured by rental property"),
    TaxCategory("Property Tax", 3600, True, "Local real estate taxes"),
    TaxCategory("Cleaning & Maintenance", 2400, True, "Turnover cleaning and routine repairs"),
    TaxCategory("Utilities", 1800, True, "Electricity, water, gas and internet"),
    TaxCategory("Insurance", 1200, True, "Short-term rental and liability coverage"),
    TaxCategory("Professional Services", 900, True, "Accounting, legal and management fees"),
    TaxCategory("Supplies", 650, True, "Linens, toiletries and consumables"),
    TaxCategory("Marketing", 480, True, "Listing fees and advertising"),
    TaxCategory("Depreciation", 5200, True, "Building and furnishing depreciation"),
    TaxCategory("Capital Improvements", 4000, False, "Capitalized and depreciated over time"),
    TaxCategory("Personal Use", 750, False, "Expenses attributable to personal stays"),
]


def fallback_transactions() -> List[TransactionRow]:
    return list(SAMPLE_TRANSACTIONS[:FALLBACK_TRANSACTIONS])


def fallback_properties() -> List[PropertyRow]:
    return list(SAMPLE_PROPERTIES[:FALLBACK_PROPERTIES])


def fallback_monthly() -> List[MonthlyBucket]:
    return list(SAMPLE_MONTHLY[:FALLBACK_MONTHS])
