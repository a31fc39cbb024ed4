"""Request rate limiting shared by the app and its routers."""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

REPORT_RATE = "30/minute"
