from __future__ import annotations

from pathlib import Path

import pytest

from sales_pivot.config import get_settings


def test_settings_require_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BACKEND_URL", raising=False)
    monkeypatch.delenv("BACKEND_KEY", raising=False)
    with pytest.raises(RuntimeError):
        get_settings()
    s = get_settings(require_backend=False)
    assert s.backend_url == ""
    assert s.analytics_rpc == "get_sales_analytics"


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKEND_URL", "https://example.supabase.co/")
    monkeypatch.setenv("BACKEND_KEY", "secret")
    monkeypatch.setenv("SALES_DATA_DIR", "/tmp/sales")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.backend_url == "https://example.supabase.co"
    assert s.sales_data_dir == Path("/tmp/sales")
    assert s.log_level == "DEBUG"
