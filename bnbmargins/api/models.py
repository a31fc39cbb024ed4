"""Pydantic models for API request/response schemas."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PropertyResponse(BaseModel):
    """Property response model."""
    id: str
    name: str
    address: Optional[str] = None
    property_type: str
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    max_guests: Optional[int] = None
    purchase_price: Optional[float] = None
    purchase_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str


class BookingResponse(BaseModel):
    """Booking response model, including the cancellation record when present."""
    id: str
    property_id: str
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: str
    check_out_date: str
    nights: int
    guests: int
    total_amount: float
    custom_rate: Optional[float] = None
    status: str
    booking_source: Optional[str] = None
    notes: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[float] = None
    cancellation_fee: Optional[float] = None
    created_at: str
    updated_at: str


class BookingCreateResponse(BaseModel):
    """A new booking and the income transaction derived from it, if any."""
    booking: BookingResponse
    transaction_id: Optional[str] = None


class CancelBookingRequest(BaseModel):
    """Request to cancel a pending or confirmed booking."""
    reason: Optional[str] = Field(default=None, max_length=500)
    refund_amount: Optional[float] = Field(default=None, ge=0)
    cancellation_fee: float = Field(default=0.0, ge=0)


class TransactionResponse(BaseModel):
    """Transaction response model."""
    id: str
    property_id: str
    booking_id: Optional[str] = None
    type: str
    category: str
    amount: float
    description: Optional[str] = None
    date: str
    receipt_url: Optional[str] = None
    created_at: str
    updated_at: str


class CategoryResponse(BaseModel):
    """Category response model."""
    id: str
    name: str
    type: str
    color: Optional[str] = None
    is_default: bool
    created_at: str
    updated_at: str


class CategorySuggestions(BaseModel):
    """Suggested category names per transaction type."""
    income: List[str]
    expense: List[str]


class DeleteResponse(BaseModel):
    id: str
    deleted: bool


class DashboardSummary(BaseModel):
    """Aggregated dashboard widgets for one owner."""
    totals: Dict[str, float]
    averages: Dict[str, float]
    properties: List[Dict[str, object]]
    monthly: List[Dict[str, object]]
    expense_categories: Dict[str, float]
    fee_model: str
    fee_description: str
