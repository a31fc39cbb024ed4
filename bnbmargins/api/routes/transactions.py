"""Transaction routes for income and expense line items."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from bnbmargins.api.dependencies import get_owner_id, get_store, unwrap
from bnbmargins.api.models import DeleteResponse, TransactionResponse
from bnbmargins.data_access.models import TransactionCreate, TransactionUpdate
from bnbmargins.data_access.store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[TransactionResponse])
def list_transactions(
    type: Optional[str] = None,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> List[TransactionResponse]:
    """
    List the owner's transactions, newest first.

    Args:
        type: Optional filter, 'income' or 'expense'
    """
    rows = unwrap(store.transactions.get_all(owner_id), "listing transactions")
    if type:
        rows = [row for row in rows if row["type"] == type]
    return [TransactionResponse(**row) for row in rows]


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> TransactionResponse:
    return TransactionResponse(**unwrap(store.transactions.get_by_id(transaction_id, owner_id), "loading transaction"))


@router.post("/", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> TransactionResponse:
    row = unwrap(store.transactions.create(request, owner_id), "creating transaction")
    logger.info(f"Recorded {row['type']} transaction {row['id']} ({row['category']}: ${row['amount']:,.2f})")
    return TransactionResponse(**row)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request: TransactionUpdate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> TransactionResponse:
    """Update a transaction. Its income/expense type cannot change."""
    row = unwrap(store.transactions.update(transaction_id, request, owner_id), "updating transaction")
    return TransactionResponse(**row)


@router.delete("/{transaction_id}", response_model=DeleteResponse)
def delete_transaction(
    transaction_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> DeleteResponse:
    return DeleteResponse(**unwrap(store.transactions.delete(transaction_id, owner_id), "deleting transaction"))
