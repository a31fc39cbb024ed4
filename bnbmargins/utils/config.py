"""Configuration utilities for BnbMargins services and reporting."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class StoreConfigError(RuntimeError):
    """Raised when a required store setting is missing from the environment."""


@dataclass(frozen=True)
class AppConfig:
    """Application configuration resolved from environment variables."""

    data_dir: Path
    store_url: Path
    reports_dir: Path
    anon_key: Optional[str] = None
    service_role_key: Optional[str] = None
    log_level: str = "INFO"
    fee_model: str = "split"


def _normalize_path(path_str: str) -> Path:
    """Ensure a path is absolute and expanded."""

    raw_path = Path(path_str).expanduser()
    if raw_path.is_absolute():
        return raw_path
    return (Path.cwd() / raw_path).resolve()


def load_config(data_dir_override: Optional[str] = None) -> AppConfig:
    """Load application configuration, optionally overriding the data directory."""

    data_dir = _normalize_path(data_dir_override or os.getenv("BNB_DATA_DIR", "data"))
    store_env = os.getenv("BNB_STORE_URL")
    reports_env = os.getenv("BNB_REPORTS_DIR")

    return AppConfig(
        data_dir=data_dir,
        store_url=_normalize_path(store_env) if store_env else data_dir / "bnbmargins.db",
        reports_dir=_normalize_path(reports_env) if reports_env else data_dir / "reports",
        anon_key=os.getenv("BNB_ANON_KEY") or None,
        service_role_key=os.getenv("BNB_SERVICE_ROLE_KEY") or None,
        log_level=os.getenv("BNB_LOG_LEVEL", "INFO").upper(),
        fee_model=os.getenv("BNB_FEE_MODEL", "split").strip().lower(),
    )


def require_key(config: AppConfig, attribute: str, env_name: str) -> str:
    """Return a configured key or raise naming the missing variable."""

    value = getattr(config, attribute)
    if not value:
        raise StoreConfigError(f"Missing required environment variable: {env_name}")
    return value


def configure_logging(level: str) -> None:
    """Configure root logging with a consistent format."""

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()

    if not root_logger.handlers:
        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        )
    else:
        root_logger.setLevel(numeric_level)


__all__ = ["AppConfig", "StoreConfigError", "load_config", "require_key", "configure_logging"]
