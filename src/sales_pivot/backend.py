"""Hosted backend helpers.

Centralizes creation of authenticated HTTP sessions and the RPC call used
throughout the toolkit. The backend exposes PostgREST-style functions at
`{base_url}/rest/v1/rpc/{name}`.
"""

from __future__ import annotations

import logging
from typing import Any

import certifi
import requests

from sales_pivot.config import Settings

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class BackendError(RuntimeError):
    """Raised when the backend answers with an unexpected payload."""


def get_session(settings: Settings) -> requests.Session:
    """Return a `requests.Session` carrying the backend auth headers.

    Args:
        settings: Settings with `backend_key` populated.

    Returns:
        Configured Session instance.
    """
    session = requests.Session()
    session.headers.update(
        {
            "apikey": settings.backend_key,
            "Authorization": f"Bearer {settings.backend_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
    )
    session.verify = certifi.where()
    return session


def rpc_url(base_url: str, name: str) -> str:
    return f"{base_url.rstrip('/')}/rest/v1/rpc/{name}"


def call_rpc(
    session: requests.Session,
    base_url: str,
    name: str,
    payload: dict[str, Any] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """POST to a backend RPC and return the decoded JSON body.

    Args:
        session: Session from `get_session`.
        base_url: Backend base URL.
        name: RPC function name.
        payload: JSON-serializable arguments.
        timeout: Request timeout in seconds.

    Returns:
        Decoded JSON, or None for an empty (204) response.

    Raises:
        requests.HTTPError: if the backend returns a non-2xx status.
    """
    url = rpc_url(base_url, name)
    log.info("Calling RPC %s", name)
    r = session.post(url, json=payload or {}, timeout=timeout)
    r.raise_for_status()
    if r.status_code == 204 or not r.content:
        return None
    return r.json()
