"""Shared dependencies for API routes."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header, HTTPException

from bnbmargins.data_access.store import INVALID, NOT_FOUND, QueryResult, Store, create_client
from bnbmargins.reporting.generator import ReportGenerator
from bnbmargins.utils.config import AppConfig, StoreConfigError, load_config

logger = logging.getLogger(__name__)

# Global configuration
CONFIG: AppConfig = load_config()

# Singleton instances
_STORE: Optional[Store] = None
_REPORT_GENERATOR: Optional[ReportGenerator] = None


def get_config() -> AppConfig:
    """Get application configuration, reloading if the environment changed."""
    global CONFIG, _STORE, _REPORT_GENERATOR
    latest = load_config()
    if latest != CONFIG:
        CONFIG = latest
        _STORE = None
        _REPORT_GENERATOR = None
    return CONFIG


def get_store() -> Store:
    """Get or create the application store client."""
    global _STORE
    config = get_config()
    if _STORE is None:
        try:
            _STORE = create_client(config)
        except StoreConfigError as exc:
            logger.error(f"Store is not configured: {exc}")
            raise HTTPException(status_code=503, detail=str(exc))
    return _STORE


def get_report_generator() -> ReportGenerator:
    """Get or create ReportGenerator instance."""
    global _REPORT_GENERATOR
    store = get_store()
    if _REPORT_GENERATOR is None:
        _REPORT_GENERATOR = ReportGenerator(store)
    return _REPORT_GENERATOR


def get_owner_id(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Owning user identifier supplied by the authentication layer."""
    if not x_owner_id:
        raise HTTPException(status_code=401, detail="Missing X-Owner-Id header")
    return x_owner_id


def http_error(kind: str, detail: str, action: str) -> HTTPException:
    """Map a store failure kind to the HTTP error returned to the client."""
    if kind == NOT_FOUND:
        return HTTPException(status_code=404, detail=detail)
    if kind == INVALID:
        return HTTPException(status_code=400, detail=detail)
    logger.error(f"Database error {action}: {detail}")
    return HTTPException(status_code=500, detail=f"Database error: {detail}")


def unwrap(result: QueryResult, action: str):
    """Return ``result.data`` or raise the matching HTTP error."""
    if result.ok:
        return result.data
    raise http_error(result.kind, result.error, action)
