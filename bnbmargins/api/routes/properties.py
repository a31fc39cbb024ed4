"""Property management routes for CRUD operations on properties."""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends

from bnbmargins.api.dependencies import get_owner_id, get_store, unwrap
from bnbmargins.api.models import DeleteResponse, PropertyResponse, TransactionResponse
from bnbmargins.data_access.models import PropertyCreate, PropertyUpdate
from bnbmargins.data_access.store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[PropertyResponse])
def list_properties(
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> List[PropertyResponse]:
    """List the owner's properties ordered by name."""
    rows = unwrap(store.properties.get_all(owner_id), "listing properties")
    return [PropertyResponse(**row) for row in rows]


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> PropertyResponse:
    """Get a single property by ID."""
    return PropertyResponse(**unwrap(store.properties.get_by_id(property_id, owner_id), "loading property"))


@router.get("/{property_id}/transactions", response_model=List[TransactionResponse])
def list_property_transactions(
    property_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> List[TransactionResponse]:
    """Transactions recorded against one property, newest first."""
    unwrap(store.properties.get_by_id(property_id, owner_id), "loading property")
    rows = unwrap(store.transactions.get_by_property(property_id, owner_id), "listing property transactions")
    return [TransactionResponse(**row) for row in rows]


@router.post("/", response_model=PropertyResponse, status_code=201)
def create_property(
    request: PropertyCreate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> PropertyResponse:
    """Create a new property."""
    row = unwrap(store.properties.create(request, owner_id), "creating property")
    logger.info(f"Created property: {row['name']} (ID: {row['id']})")
    return PropertyResponse(**row)


@router.put("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: str,
    request: PropertyUpdate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> PropertyResponse:
    """Update an existing property in place."""
    row = unwrap(store.properties.update(property_id, request, owner_id), "updating property")
    logger.info(f"Updated property ID {property_id}")
    return PropertyResponse(**row)


@router.delete("/{property_id}", response_model=DeleteResponse)
def delete_property(
    property_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> DeleteResponse:
    """Delete a property together with its bookings and transactions."""
    result = unwrap(store.properties.delete(property_id, owner_id), "deleting property")
    logger.info(f"Deleted property ID {property_id}")
    return DeleteResponse(**result)
