"""Category routes, including the suggested category lists."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from bnbmargins.api.dependencies import get_owner_id, get_store, unwrap
from bnbmargins.api.models import CategoryResponse, CategorySuggestions, DeleteResponse
from bnbmargins.data_access.models import (
    TRANSACTION_TYPES,
    CategoryCreate,
    CategoryUpdate,
    suggested_categories,
)
from bnbmargins.data_access.store import Store

router = APIRouter()


@router.get("/suggestions", response_model=CategorySuggestions)
def category_suggestions() -> CategorySuggestions:
    """Suggested category names for income and expense transactions."""
    return CategorySuggestions(income=suggested_categories("income"), expense=suggested_categories("expense"))


@router.get("/", response_model=List[CategoryResponse])
def list_categories(
    type: Optional[str] = None,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> List[CategoryResponse]:
    if type is None:
        rows = unwrap(store.categories.get_all(owner_id), "listing categories")
    elif type in TRANSACTION_TYPES:
        rows = unwrap(store.categories.get_by_type(type, owner_id), "listing categories")
    else:
        raise HTTPException(status_code=400, detail=f"Unknown category type: {type}")
    return [CategoryResponse(**row) for row in rows]


@router.post("/", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> CategoryResponse:
    return CategoryResponse(**unwrap(store.categories.create(request, owner_id), "creating category"))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    request: CategoryUpdate,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> CategoryResponse:
    return CategoryResponse(**unwrap(store.categories.update(category_id, request, owner_id), "updating category"))


@router.delete("/{category_id}", response_model=DeleteResponse)
def delete_category(
    category_id: str,
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> DeleteResponse:
    return DeleteResponse(**unwrap(store.categories.delete(category_id, owner_id), "deleting category"))
