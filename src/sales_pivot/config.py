"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (including a check that the backend URL and key
are present when the caller needs to talk to the analytics backend).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_RPC = "get_sales_analytics"


@dataclass(frozen=True)
class Settings:
    """Container for dashboard configuration read from the environment.

    Attributes:
        backend_url: Base URL of the hosted backend (no trailing slash).
        backend_key: API key sent as `apikey` and bearer token.
        analytics_rpc: Name of the RPC returning aggregated sales records.
        sales_data_dir: Local cache directory for fetched record sets.
        default_area: Area filter applied when none is given.
        log_level: Logging level name.
    """
    backend_url: str
    backend_key: str
    analytics_rpc: str
    sales_data_dir: Path
    default_area: str
    log_level: str


def get_settings(require_backend: bool = True) -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Args:
        require_backend: When True, the backend URL and key must be set.

    Raises:
        RuntimeError: if `BACKEND_URL` or `BACKEND_KEY` is missing and
            `require_backend` is True.
    """
    backend_url = os.getenv("BACKEND_URL", "").strip().rstrip("/")
    backend_key = os.getenv("BACKEND_KEY", "").strip()
    analytics_rpc = os.getenv("ANALYTICS_RPC", DEFAULT_RPC).strip() or DEFAULT_RPC
    sales_data_dir = Path(os.getenv("SALES_DATA_DIR", "data/sales_cache"))
    default_area = os.getenv("DEFAULT_AREA", "All").strip() or "All"
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    if require_backend and not (backend_url and backend_key):
        raise RuntimeError(
            "BACKEND_URL and BACKEND_KEY are required. Set them in .env "
            "(example: 'BACKEND_URL=https://<project>.supabase.co')."
        )

    return Settings(
        backend_url=backend_url,
        backend_key=backend_key,
        analytics_rpc=analytics_rpc,
        sales_data_dir=sales_data_dir,
        default_area=default_area,
        log_level=log_level,
    )
