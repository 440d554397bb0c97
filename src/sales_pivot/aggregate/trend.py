"""Yearly trend tables for the dashboard chart.

Expectations:
- Input: validated `AggregatedRecord` rows (typically fetched with the
  `product` dimension so every record is counted once).
- Outputs: pandas DataFrames documented on each function docstring.
"""
from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from sales_pivot.aggregate.columns import MONTH_LABELS
from sales_pivot.models import AggregatedRecord


def _records_frame(records: Iterable[AggregatedRecord]) -> pd.DataFrame:
    rows = [
        {"year": r.year, "month": r.month, "total_amount": r.total_amount}
        for r in records
    ]
    return pd.DataFrame(rows, columns=["year", "month", "total_amount"])


def trend_long(records: Iterable[AggregatedRecord]) -> pd.DataFrame:
    """Return monthly amounts in long form, one row per (year, month).

    Returns:
        DataFrame with columns `year`, `month`, `month_label`, `amount`,
        sorted by year then month.
    """
    pdf = _records_frame(records)
    if pdf.empty:
        return pd.DataFrame(columns=["year", "month", "month_label", "amount"])

    out = (
        pdf.groupby(["year", "month"], as_index=False)["total_amount"]
        .sum()
        .rename(columns={"total_amount": "amount"})
        .sort_values(["year", "month"])
        .reset_index(drop=True)
    )
    out["month_label"] = out["month"].map(MONTH_LABELS)
    return out[["year", "month", "month_label", "amount"]]


def build_trend(records: Iterable[AggregatedRecord]) -> pd.DataFrame:
    """Return one row per year with the yearly total and a column per month.

    Returns:
        DataFrame with columns `year`, `total` and one month-label column
        for every month present in the data (missing cells are 0), sorted by
        year ascending.
    """
    long = trend_long(records)
    if long.empty:
        return pd.DataFrame(columns=["year", "total"])

    wide = long.pivot_table(
        index="year",
        columns="month",
        values="amount",
        aggfunc="sum",
        fill_value=0,
    ).sort_index()
    wide.columns = [MONTH_LABELS[int(m)] for m in wide.columns]
    wide.insert(0, "total", wide.sum(axis=1))
    return wide.reset_index()
