"""Validated row models for the owner-scoped store."""
from __future__ import annotations

import datetime as dt
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

PROPERTY_TYPES = ("apartment", "house", "condo", "townhouse", "other")
TERMINAL_BOOKING_STATUSES = frozenset({"cancelled", "completed"})
TRANSACTION_TYPES = ("income", "expense")

INCOME_CATEGORIES: List[str] = [
    "Booking Revenue",
    "Cleaning Fees",
    "Security Deposit",
    "Extra Guest Fees",
    "Pet Fees",
    "Other Income",
]

EXPENSE_CATEGORIES: List[str] = [
    "Cleaning",
    "Utilities",
    "Maintenance",
    "Insurance",
    "Property Tax",
    "Mortgage/Rent",
    "Marketing",
    "Supplies",
    "Professional Services",
    "Other Expenses",
]

_PROPERTY_TYPE_PATTERN = "^(" + "|".join(PROPERTY_TYPES) + ")$"
_OPEN_STATUS_PATTERN = "^(pending|confirmed)$"
_TERMINAL_STATUS_PATTERN = "^(" + "|".join(sorted(TERMINAL_BOOKING_STATUSES)) + ")$"
_TRANSACTION_TYPE_PATTERN = "^(" + "|".join(TRANSACTION_TYPES) + ")$"


def suggested_categories(transaction_type: str) -> List[str]:
    """Suggested category names for a transaction type."""
    if transaction_type == "income":
        return list(INCOME_CATEGORIES)
    if transaction_type == "expense":
        return list(EXPENSE_CATEGORIES)
    raise ValueError(f"Unknown transaction type: {transaction_type}")


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _PatchModel(_StrictModel):
    """Partial update. Omitted fields are left alone; NOT NULL columns cannot be cleared."""

    not_null_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_cleared_columns(self) -> "_PatchModel":
        cleared = [
            name for name in self.not_null_fields
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


# ============================================================================
# Properties
# ============================================================================

class PropertyCreate(_StrictModel):
    """A rental unit owned by a user."""
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    property_type: str = Field(default="other", pattern=_PROPERTY_TYPE_PATTERN)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    max_guests: Optional[int] = Field(default=None, ge=1)
    purchase_price: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[dt.date] = None
    notes: Optional[str] = None


class PropertyUpdate(_PatchModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("name", "property_type")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    property_type: Optional[str] = Field(default=None, pattern=_PROPERTY_TYPE_PATTERN)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    max_guests: Optional[int] = Field(default=None, ge=1)
    purchase_price: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[dt.date] = None
    notes: Optional[str] = None


# ============================================================================
# Bookings
# ============================================================================

class BookingCreate(_StrictModel):
    """A guest stay at a property.

    ``nights`` is derived from the stay dates and may be omitted.
    """
    property_id: str
    guest_name: str = Field(..., min_length=1, max_length=200)
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: dt.date
    check_out_date: dt.date
    nights: Optional[int] = Field(default=None, ge=1)
    guests: int = Field(default=1, ge=1)
    total_amount: float = Field(default=0.0, ge=0)
    custom_rate: Optional[float] = Field(default=None, ge=0)
    status: str = Field(default="confirmed", pattern=_OPEN_STATUS_PATTERN)
    booking_source: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _derive_nights(self) -> "BookingCreate":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        self.nights = (self.check_out_date - self.check_in_date).days
        return self


class BookingUpdate(_PatchModel):
    """Editable booking fields.

    Cancellation details and the terminal statuses are set only through
    :class:`BookingTransition`.
    """
    not_null_fields: ClassVar[Tuple[str, ...]] = (
        "guest_name", "check_in_date", "check_out_date", "nights", "guests", "total_amount", "status",
    )

    guest_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: Optional[dt.date] = None
    check_out_date: Optional[dt.date] = None
    nights: Optional[int] = Field(default=None, ge=1)
    guests: Optional[int] = Field(default=None, ge=1)
    total_amount: Optional[float] = Field(default=None, ge=0)
    custom_rate: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, pattern=_OPEN_STATUS_PATTERN)
    booking_source: Optional[str] = None
    notes: Optional[str] = None


class BookingTransition(_StrictModel):
    status: str = Field(..., pattern=_TERMINAL_STATUS_PATTERN)
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[float] = Field(default=None, ge=0)
    cancellation_fee: Optional[float] = Field(default=None, ge=0)


# ============================================================================
# Transactions
# ============================================================================

class TransactionCreate(_StrictModel):
    """An income or expense line item. The type cannot change after creation."""
    property_id: str
    booking_id: Optional[str] = None
    type: str = Field(..., pattern=_TRANSACTION_TYPE_PATTERN)
    category: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., ge=0)
    description: Optional[str] = None
    date: dt.date
    receipt_url: Optional[str] = None


class TransactionUpdate(_PatchModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("property_id", "category", "amount", "date")

    property_id: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    receipt_url: Optional[str] = None


# ============================================================================
# Categories
# ============================================================================

class CategoryCreate(_StrictModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., pattern=_TRANSACTION_TYPE_PATTERN)
    color: Optional[str] = Field(default=None, pattern="^#[0-9A-Fa-f]{6}$")
    is_default: bool = False


class CategoryUpdate(_PatchModel):
    not_null_fields: ClassVar[Tuple[str, ...]] = ("name", "is_default")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern="^#[0-9A-Fa-f]{6}$")
    is_default: Optional[bool] = None
