from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from sales_pivot.backend import BackendError, get_session, rpc_url
from sales_pivot.config import Settings
from sales_pivot.ingest.fetch_records import (
    AnalyticsQuery,
    fetch_filter_options,
    fetch_records,
    refresh_sales_data,
)
from sales_pivot.models import RowDimension


class FakeResponse:
    def __init__(self, data: Any, status_code: int = 200) -> None:
        self._data = data
        self.status_code = status_code
        self.content = b"" if data is None else json.dumps(data).encode("utf-8")

    def raise_for_status(self) -> None:
        return None

    def json(self) -> Any:
        return self._data


class FakeSession:
    def __init__(self, data: Any, status_code: int = 200) -> None:
        self.data = data
        self.status_code = status_code
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def post(self, url: str, json: dict[str, Any], timeout: float) -> FakeResponse:
        self.calls.append((url, json))
        return FakeResponse(self.data, self.status_code)


class ExplodingSession:
    def post(self, *args: Any, **kwargs: Any) -> None:
        raise AssertionError("backend should not be called")


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        backend_url="https://example.supabase.co",
        backend_key="key",
        analytics_rpc="get_sales_analytics",
        sales_data_dir=tmp_path / "cache",
        default_area="All",
        log_level="INFO",
    )


ROWS = [{"year": 2024, "month": 1, "col_label_1": "A", "col_label_2": "-", "col_label_3": "-", "total_amount": 5}]


def test_query_payload() -> None:
    q = AnalyticsQuery(dimension=RowDimension.HIERARCHY_ACCOUNT, years=["2024"], months=["1", "12"], areas=[])
    payload = q.to_payload()
    assert [payload[f"lvl{i}_field"] for i in range(1, 5)] == ["key_account_type", "cust_group", "business_area", ""]
    assert payload["filter_years"] == ["2024"]
    assert payload["filter_months"] == [1, 12]
    assert payload["filter_areas"] == ["All"]
    assert AnalyticsQuery().to_payload()["filter_months"] == []


def test_fetch_posts_to_rpc_and_caches(tmp_path: Path) -> None:
    s = _settings(tmp_path)
    session = FakeSession(ROWS)
    q = AnalyticsQuery(years=["2024"])

    assert fetch_records(q, s, session=session) == ROWS
    assert session.calls[0][0] == "https://example.supabase.co/rest/v1/rpc/get_sales_analytics"
    assert (s.sales_data_dir / q.cache_name()).exists()

    assert fetch_records(q, s, session=ExplodingSession()) == ROWS


def test_force_refetches(tmp_path: Path) -> None:
    s = _settings(tmp_path)
    q = AnalyticsQuery()
    fetch_records(q, s, session=FakeSession(ROWS))
    fresh = FakeSession([])
    assert fetch_records(q, s, session=fresh, force=True) == []
    assert len(fresh.calls) == 1


def test_cache_names_differ_per_query() -> None:
    assert AnalyticsQuery(years=["2023"]).cache_name() != AnalyticsQuery(years=["2024"]).cache_name()


def test_non_list_payload_raises(tmp_path: Path) -> None:
    with pytest.raises(BackendError):
        fetch_records(AnalyticsQuery(), _settings(tmp_path), session=FakeSession({"error": "x"}), use_cache=False)


def test_refresh_calls_refresh_rpc(tmp_path: Path) -> None:
    session = FakeSession(None, status_code=204)
    refresh_sales_data(_settings(tmp_path), session=session)
    assert session.calls[0][0].endswith("/rpc/refresh_sales_data")


def test_session_headers(tmp_path: Path) -> None:
    session = get_session(_settings(tmp_path))
    assert session.headers["apikey"] == "key"
    assert session.headers["Authorization"] == "Bearer key"
    assert rpc_url("https://x.co/", "f") == "https://x.co/rest/v1/rpc/f"


def test_level_fields_are_source_columns() -> None:
    payload = AnalyticsQuery(dimension=RowDimension.PRODUCT).to_payload()
    assert (payload["lvl1_field"], payload["lvl2_field"]) == ("product", "")
    payload = AnalyticsQuery(dimension=RowDimension.HIERARCHY_BA_PSS).to_payload()
    assert (payload["lvl1_field"], payload["lvl2_field"], payload["lvl3_field"]) == ("business_area", "pss", "")


def test_month_filter_rejects_names() -> None:
    with pytest.raises(ValueError):
        AnalyticsQuery(months=["Jan"]).to_payload()
    with pytest.raises(ValueError):
        AnalyticsQuery(months=["13"]).to_payload()


def test_filter_options_from_backend(tmp_path: Path) -> None:
    session = FakeSession({
        "year": [2023, 2024, 2024],
        "month": [1, 2],
        "area": ["POWER AGCON", "MINING", None, ""],
        "business_area": ["BA1"],
    })
    q = AnalyticsQuery(years=["2024"], areas=["POWER AGCON"])
    options = fetch_filter_options(_settings(tmp_path), q, session=session)

    url, args = session.calls[0]
    assert url.endswith("/rpc/get_dynamic_filter_options")
    assert args["p_year"] == "2024"
    assert args["p_area"] == "POWER AGCON"
    assert args["p_ba"] is None

    assert options.years == ["2023", "2024"]
    assert options.areas == ["POWER AGCON", "MINING"]
    assert options.business_areas == ["BA1"]
    assert options.cust_names == []


def test_filter_options_rejects_list_payload(tmp_path: Path) -> None:
    with pytest.raises(BackendError):
        fetch_filter_options(_settings(tmp_path), session=FakeSession([1, 2]))
