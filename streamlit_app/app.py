from __future__ import annotations

import io
from pathlib import Path

import altair as alt
import pandas as pd
import streamlit as st

from sales_pivot.aggregate.formatting import axis_label, format_amount
from sales_pivot.aggregate.frame import pivot_to_frame
from sales_pivot.aggregate.tree import build_pivot_cached, expandable_ids, flatten_visible_rows
from sales_pivot.aggregate.trend import trend_long
from sales_pivot.config import get_settings
from sales_pivot.ingest.fetch_records import AnalyticsQuery, FilterOptions, fetch_filter_options, fetch_records
from sales_pivot.ingest.load_file import prepare_records, read_records_file
from sales_pivot.models import AggregatedRecord, RowDimension

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Dashboard Sales", layout="wide")
st.title("📊 Dashboard Sales")
st.caption("Dynamic Pivot & Filters")

settings = get_settings(require_backend=False)


# =====================================================
# Helpers
# =====================================================
@st.cache_data(ttl=600, show_spinner="Fetching records...")
def load_backend(
    dimension: str,
    years: tuple[str, ...],
    areas: tuple[str, ...],
    business_areas: tuple[str, ...],
) -> tuple[AggregatedRecord, ...]:
    """Fetch and validate records from the analytics backend.

    Args:
        dimension: Row dimension value.
        years: Selected years (empty tuple = all).
        areas: Selected areas (empty tuple = all).
        business_areas: Selected business areas (empty tuple = all).

    Returns:
        Tuple of validated records (hashable, so it can key the pivot cache).
    """
    query = AnalyticsQuery(
        dimension=RowDimension(dimension),
        years=list(years) or ["All"],
        areas=list(areas) or ["All"],
        business_areas=list(business_areas) or ["All"],
    )
    rows = fetch_records(query, get_settings(), use_cache=False)
    return tuple(prepare_records(rows))


@st.cache_data(ttl=600, show_spinner=False)
def load_options(years: tuple[str, ...], areas: tuple[str, ...], business_areas: tuple[str, ...]) -> FilterOptions:
    """Fetch the filter values available for the current selection."""
    query = AnalyticsQuery(
        years=list(years) or ["All"],
        areas=list(areas) or ["All"],
        business_areas=list(business_areas) or ["All"],
    )
    return fetch_filter_options(get_settings(), query)


def _with_selected(options: list[str], key: str) -> list[str]:
    """Keep already-selected values selectable even if the backend narrowed them out."""
    selected = st.session_state.get(key, [])
    return options + [v for v in selected if v not in options]


@st.cache_data(show_spinner="Reading file...")
def load_upload(name: str, content: bytes) -> tuple[AggregatedRecord, ...]:
    """Validate records from an uploaded export."""
    suffix = Path(name).suffix.lower()
    tmp = settings.sales_data_dir / f"upload{suffix}"
    tmp.parent.mkdir(parents=True, exist_ok=True)
    tmp.write_bytes(content)
    return tuple(prepare_records(read_records_file(tmp)))


def style_table(df: pd.DataFrame):
    """Format amounts and bold the grand total row for display."""
    amount_cols = [c for c in df.columns if c not in ("Row",) and not c.startswith("YoY")]
    return (
        df.style
        .format(format_amount, subset=amount_cols)
        .apply(
            lambda row: ["font-weight: bold" if row["Row"] == "GRAND TOTAL" else "" for _ in row],
            axis=1,
        )
        .set_table_styles([{"selector": "th", "props": [("text-align", "center")]}])
    )


# =====================================================
# SECTION 0 — DATA SOURCE
# =====================================================
with st.sidebar:
    st.header("Data")
    dimension = st.selectbox(
        "Rows",
        [d.value for d in RowDimension],
        format_func=lambda v: RowDimension(v).display_name,
        index=[d.value for d in RowDimension].index(RowDimension.BUSINESS_AREA.value),
    )
    upload = st.file_uploader("Upload export (.json / .csv / .xlsx)", type=["json", "csv", "xlsx"])

    use_backend = upload is None and bool(settings.backend_url and settings.backend_key)
    sel_years: list[str] = []
    sel_areas: list[str] = []
    sel_ba: list[str] = []
    if use_backend:
        if "f_areas" not in st.session_state and settings.default_area != "All":
            st.session_state["f_areas"] = [settings.default_area]
        try:
            opts = load_options(
                tuple(st.session_state.get("f_years", [])),
                tuple(st.session_state.get("f_areas", [])),
                tuple(st.session_state.get("f_ba", [])),
            )
        except Exception as exc:  # pragma: no cover - runtime failure handling
            st.error(f"Unable to load filter options: {exc}")
            st.stop()
        sel_years = st.multiselect("Year", _with_selected(opts.years, "f_years"), key="f_years")
        sel_areas = st.multiselect("Area", _with_selected(opts.areas, "f_areas"), key="f_areas")
        sel_ba = st.multiselect("Business Area", _with_selected(opts.business_areas, "f_ba"), key="f_ba")

if upload is not None:
    records = load_upload(upload.name, upload.getvalue())
elif use_backend:
    try:
        records = load_backend(dimension, tuple(sel_years), tuple(sel_areas), tuple(sel_ba))
    except Exception as exc:  # pragma: no cover - runtime failure handling
        st.error(f"Unable to fetch sales data: {exc}")
        st.stop()
else:
    st.info("Upload an export or set `BACKEND_URL` and `BACKEND_KEY` in `.env`.")
    st.stop()

if not records:
    st.warning("No records for the current selection.")
    st.stop()

# =====================================================
# SECTION 1 — PIVOT
# =====================================================
st.header("📈 Pivot")

years = sorted({str(r.year) for r in records})
expanded_years = st.multiselect("Show months for", years, default=[])
result = build_pivot_cached(records, dimension, frozenset(expanded_years))

# expansion state is keyed by node id, so it survives refreshes
state_key = f"expanded_rows_{dimension}"
if state_key not in st.session_state:
    st.session_state[state_key] = []

c1, c2, c3 = st.columns([4, 1, 1])
with c2:
    if st.button("Expand all"):
        st.session_state[state_key] = sorted(expandable_ids(result.roots))
with c3:
    if st.button("Collapse all"):
        st.session_state[state_key] = []
with c1:
    options = sorted(expandable_ids(result.roots))
    st.session_state[state_key] = [i for i in st.session_state[state_key] if i in options]
    expanded_rows = st.multiselect("Expanded rows", options, key=state_key)

show_yoy = st.toggle("Year-over-year", value=True)
visible = flatten_visible_rows(result.roots, frozenset(expanded_rows))
table = pivot_to_frame(result, visible, frozenset(expanded_rows), with_yoy=show_yoy).drop(columns=["id"])

k1, k2, k3 = st.columns(3)
k1.metric("Grand Total", format_amount(result.grand_total))
k2.metric("Rows", len(result.roots))
k3.metric("Years", len(years))

st.dataframe(style_table(table), width="stretch", hide_index=True)

buf = io.StringIO()
table.to_csv(buf, index=False)
st.download_button("Download CSV", buf.getvalue(), file_name="pivot.csv", mime="text/csv")

st.divider()

# =====================================================
# SECTION 2 — YEARLY TREND
# =====================================================
st.header("🗓️ Yearly Trend")

df_trend = trend_long(records)
if df_trend.empty:
    st.info("Trend data not available.")
else:
    chart = (
        alt.Chart(df_trend)
        .mark_bar()
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("amount:Q", title="Amount"),
            color=alt.Color("month_label:N", title="Month", sort=alt.SortField("month")),
            order=alt.Order("month:Q"),
            tooltip=["year:O", "month_label:N", alt.Tooltip("amount:Q", format=",.0f")],
        )
        .properties(height=320)
    )
    st.altair_chart(chart, width="stretch")

    totals = df_trend.groupby("year", as_index=False)["amount"].sum()
    st.caption(" • ".join(f"{int(r.year)}: {axis_label(r.amount)}" for r in totals.itertuples()))
