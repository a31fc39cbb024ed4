"""Booking routes: CRUD plus the cancel and complete transitions."""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from bnbmargins.api.dependencies import get_owner_id, get_store, http_error, unwrap
from bnbmargins.api.models import (
    BookingCreateResponse,
    BookingResponse,
    CancelBookingRequest,
    DeleteResponse,
)
from bnbmargins.bookings.workflows import (
    BookingStateError,
    BookingWorkflowError,
    cancel_booking,
    complete_booking,
    create_booking_with_income,
)
from bnbmargins.data_access.models import BookingCreate, BookingUpdate
from bnbmargins.data_access.store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[BookingResponse])
def list_bookings(
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> List[BookingResponse]:
    rows = unwrap(store.bookings.get_all(owner_id), "listing bookings")
    return [BookingResponse(**row) for row in rows]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> BookingResponse:
    return BookingResponse(**unwrap(store.bookings.get_by_id(booking_id, owner_id), "loading booking"))


@router.post("/", response_model=BookingCreateResponse, status_code=201)
def create_booking(
    request: BookingCreate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> BookingCreateResponse:
    """Create a booking and record its income transaction."""
    try:
        created = create_booking_with_income(store, owner_id, request)
    except BookingWorkflowError as exc:
        raise http_error(exc.kind, str(exc), "running booking workflow")
    transaction_id = created.transaction["id"] if created.transaction else None
    return BookingCreateResponse(booking=BookingResponse(**created.booking), transaction_id=transaction_id)


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    request: BookingUpdate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> BookingResponse:
    row = unwrap(store.bookings.update(booking_id, request, owner_id), "updating booking")
    return BookingResponse(**row)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel(
    booking_id: str,
    request: CancelBookingRequest,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> BookingResponse:
    """Cancel a booking, recording refund and fee."""
    try:
        row = cancel_booking(
            store,
            owner_id,
            booking_id,
            reason=request.reason,
            refund_amount=request.refund_amount,
            cancellation_fee=request.cancellation_fee,
        )
    except BookingStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except BookingWorkflowError as exc:
        raise http_error(exc.kind, str(exc), "running booking workflow")
    logger.info(f"Cancelled booking ID {booking_id}")
    return BookingResponse(**row)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete(
    booking_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> BookingResponse:
    try:
        row = complete_booking(store, owner_id, booking_id)
    except BookingStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except BookingWorkflowError as exc:
        raise http_error(exc.kind, str(exc), "running booking workflow")
    return BookingResponse(**row)


@router.delete("/{booking_id}", response_model=DeleteResponse)
def delete_booking(
    booking_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> DeleteResponse:
    return DeleteResponse(**unwrap(store.bookings.delete(booking_id, owner_id), "deleting booking"))
