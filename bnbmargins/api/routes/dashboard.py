"""Dashboard summary route."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from bnbmargins.api.dependencies import get_config, get_owner_id, get_store, unwrap
from bnbmargins.api.models import DashboardSummary
from bnbmargins.dashboard.fees import FEE_RATES
from bnbmargins.dashboard.metrics import build_dashboard
from bnbmargins.data_access.store import Store

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
def dashboard_summary(
    fee_model: Optional[str] = Query(default=None, description="Airbnb fee model: split or host-only"),
    store: Store = Depends(get_store),
    owner_id: str = Depends(get_owner_id),
) -> DashboardSummary:
    """Totals, property and monthly series, and expense mix for the owner."""
    model = fee_model or get_config().fee_model
    if model not in FEE_RATES:
        raise HTTPException(status_code=400, detail=f"Unknown fee model: {model}")

    properties = unwrap(store.properties.get_all(owner_id), "loading dashboard properties")
    transactions = unwrap(store.transactions.get_all(owner_id), "loading dashboard transactions")
    bookings = unwrap(store.bookings.get_all(owner_id), "loading dashboard bookings")

    names = {prop["id"]: prop["name"] for prop in properties}
    rows = [{**txn, "property_name": names.get(txn["property_id"], "Unknown Property")} for txn in transactions]
    return DashboardSummary(**build_dashboard(properties, rows, bookings, fee_model=model))
