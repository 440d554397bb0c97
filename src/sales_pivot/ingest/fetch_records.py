"""Utilities to fetch aggregated sales records from the analytics RPC.

`AnalyticsQuery` describes one request (row dimension plus filters). Each
distinct query is cached as a JSON file so repeated CLI runs do not hit the
backend.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import requests

from sales_pivot.backend import BackendError, call_rpc, get_session
from sales_pivot.config import Settings
from sales_pivot.models import RowDimension

log = logging.getLogger(__name__)

ALL = "All"
REFRESH_RPC = "refresh_sales_data"
FILTER_OPTIONS_RPC = "get_dynamic_filter_options"


def _all() -> list[str]:
    return [ALL]


@dataclass(frozen=True)
class AnalyticsQuery:
    """Arguments for the aggregated sales RPC.

    Every filter is a list of allowed values; `["All"]` (or an empty list)
    means unfiltered. Months are month numbers as strings.
    """
    dimension: RowDimension = RowDimension.BUSINESS_AREA
    years: list[str] = field(default_factory=_all)
    months: list[str] = field(default_factory=_all)
    areas: list[str] = field(default_factory=_all)
    business_areas: list[str] = field(default_factory=_all)
    pss: list[str] = field(default_factory=_all)
    key_account_types: list[str] = field(default_factory=_all)
    cust_groups: list[str] = field(default_factory=_all)
    products: list[str] = field(default_factory=_all)
    cust_names: list[str] = field(default_factory=_all)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body expected by the RPC."""
        def _f(values: list[str]) -> list[str]:
            return values if values else _all()

        lvl1, lvl2, lvl3, lvl4 = RowDimension(self.dimension).level_columns
        return {
            "lvl1_field": lvl1,
            "lvl2_field": lvl2,
            "lvl3_field": lvl3,
            "lvl4_field": lvl4,
            "filter_years": _f(self.years),
            "filter_months": self.month_numbers(),
            "filter_areas": _f(self.areas),
            "filter_business_areas": _f(self.business_areas),
            "filter_pss": _f(self.pss),
            "filter_key_account_types": _f(self.key_account_types),
            "filter_cust_groups": _f(self.cust_groups),
            "filter_products": _f(self.products),
            "filter_cust_names": _f(self.cust_names),
        }

    def month_numbers(self) -> list[int]:
        """Return the month filter as numbers; empty means every month.

        Raises:
            ValueError: if a month is not a number from 1 to 12.
        """
        if not self.months or ALL in self.months:
            return []
        months: list[int] = []
        for m in self.months:
            if not str(m).strip().isdigit() or not 1 <= int(m) <= 12:
                raise ValueError(f"Month filter must be 1-12, got {m!r}")
            months.append(int(m))
        return months

    def to_filter_args(self) -> dict[str, Any]:
        """Return the single-value arguments of the filter-options RPC.

        Only the first selected value of each filter narrows the options;
        None leaves that filter open.
        """
        def _p(values: list[str]) -> str | None:
            return None if (not values or ALL in values) else values[0]

        return {
            "p_year": _p(self.years),
            "p_month": _p(self.months),
            "p_area": _p(self.areas),
            "p_ba": _p(self.business_areas),
            "p_pss": _p(self.pss),
            "p_kat": _p(self.key_account_types),
            "p_cust_group": _p(self.cust_groups),
            "p_product": _p(self.products),
            "p_cust_name": _p(self.cust_names),
        }

    def cache_name(self) -> str:
        raw = json.dumps(asdict(self), sort_keys=True, default=str)
        digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()[:12]
        return f"records_{RowDimension(self.dimension).value}_{digest}.json"


def fetch_records(
    query: AnalyticsQuery,
    settings: Settings,
    session: requests.Session | None = None,
    use_cache: bool = True,
    force: bool = False,
) -> list[dict[str, Any]]:
    """Fetch raw record rows for a query, with local caching.

    Args:
        query: Dimension and filters to request.
        settings: Settings with backend URL/key and cache directory.
        session: Optional pre-built session (one is created otherwise).
        use_cache: Read/write the JSON cache in `settings.sales_data_dir`.
        force: Ignore an existing cache file and refetch.

    Returns:
        List of raw row dicts, uncleaned.

    Raises:
        requests.HTTPError: if the backend request fails.
        BackendError: if the backend does not return a JSON array.
    """
    cache_path = settings.sales_data_dir / query.cache_name()
    if use_cache and not force and cache_path.exists() and cache_path.stat().st_size > 0:
        log.info("Cache hit: %s", cache_path)
        return json.loads(cache_path.read_text(encoding="utf-8"))

    session = session or get_session(settings)
    data = call_rpc(session, settings.backend_url, settings.analytics_rpc, query.to_payload())
    if data is None:
        data = []
    if not isinstance(data, list):
        raise BackendError(
            f"{settings.analytics_rpc} returned {type(data).__name__}, expected a list"
        )

    log.info("Fetched %d records for dimension=%s", len(data), RowDimension(query.dimension).value)

    if use_cache:
        _write_cache(cache_path, data)
    return data


def _write_cache(path: Path, data: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    log.info("Saved: %s (%d bytes)", path, path.stat().st_size)


def refresh_sales_data(settings: Settings, session: requests.Session | None = None) -> None:
    """Ask the backend to rebuild its aggregated sales table from master data."""
    session = session or get_session(settings)
    call_rpc(session, settings.backend_url, REFRESH_RPC)
    log.info("Backend sales data refreshed")


@dataclass(frozen=True)
class FilterOptions:
    """Selectable values for each dashboard filter, as reported by the backend."""
    years: list[str] = field(default_factory=list)
    months: list[str] = field(default_factory=list)
    areas: list[str] = field(default_factory=list)
    business_areas: list[str] = field(default_factory=list)
    pss: list[str] = field(default_factory=list)
    key_account_types: list[str] = field(default_factory=list)
    cust_groups: list[str] = field(default_factory=list)
    products: list[str] = field(default_factory=list)
    cust_names: list[str] = field(default_factory=list)


# response key -> FilterOptions field
_OPTION_KEYS = {
    "year": "years",
    "month": "months",
    "area": "areas",
    "business_area": "business_areas",
    "pss": "pss",
    "key_account_type": "key_account_types",
    "cust_group": "cust_groups",
    "product": "products",
    "cust_name": "cust_names",
}


def _option_values(raw: Any) -> list[str]:
    if not raw:
        return []
    seen: dict[str, None] = {}
    for v in raw:
        if v is None or str(v).strip() == "":
            continue
        seen.setdefault(str(v).strip(), None)
    return list(seen)


def fetch_filter_options(
    settings: Settings,
    query: AnalyticsQuery | None = None,
    session: requests.Session | None = None,
) -> FilterOptions:
    """Fetch the values each filter can take given the current selection.

    Args:
        settings: Settings with backend URL/key.
        query: Current selection; its first value per filter narrows the
            options of the others. None asks for every option.
        session: Optional pre-built session.

    Returns:
        `FilterOptions` with de-duplicated string values in backend order.

    Raises:
        requests.HTTPError: if the backend request fails.
        BackendError: if the backend does not return a JSON object.
    """
    session = session or get_session(settings)
    args = (query or AnalyticsQuery()).to_filter_args()
    data = call_rpc(session, settings.backend_url, FILTER_OPTIONS_RPC, args)
    if data is None:
        return FilterOptions()
    if not isinstance(data, dict):
        raise BackendError(
            f"{FILTER_OPTIONS_RPC} returned {type(data).__name__}, expected an object"
        )

    options = FilterOptions(
        **{name: _option_values(data.get(key)) for key, name in _OPTION_KEYS.items()}
    )
    log.info(
        "Filter options: %d years, %d areas, %d business areas",
        len(options.years),
        len(options.areas),
        len(options.business_areas),
    )
    return options
