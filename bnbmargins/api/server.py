"""FastAPI application exposing BnbMargins property, booking and reporting workflows."""
from __future__ import annotations

import logging
from typing import Dict

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from bnbmargins.api.dependencies import CONFIG
from bnbmargins.api.rate_limit import limiter
from bnbmargins.api.routes import bookings, categories, dashboard, properties, reports, transactions
from bnbmargins.utils.config import configure_logging

logger = logging.getLogger(__name__)

# Configure logging
configure_logging(CONFIG.log_level)

# Initialize FastAPI app
app = FastAPI(title="BnbMargins API", version="0.1.0")

# Setup rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Register routers
app.include_router(properties.router, prefix="/properties", tags=["Properties"])
app.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
app.include_router(categories.router, prefix="/categories", tags=["Categories"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


@app.get("/health")
def healthcheck() -> Dict[str, str]:
    """Service liveness check."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
