"""Render a pivot result as a pandas DataFrame.

The frame is what the CLI prints/exports and what the Streamlit dashboard
displays: one row per visible node plus a trailing grand-total row.
"""
from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from sales_pivot.aggregate.columns import header_info
from sales_pivot.aggregate.yoy import compare, format_yoy, prior_col_key, yoy_delta
from sales_pivot.models import PivotNode, PivotResult

GRAND_TOTAL_LABEL = "GRAND TOTAL"
INDENT = "    "


def column_title(col_key: str) -> str:
    """Return a display title such as `2024`, `2024 Mar` or `2024 TOTAL`."""
    info = header_info(col_key)
    if info.type == "year":
        return info.label
    return f"{info.parent} {info.label}"


def _row_label(node: PivotNode, expanded_rows: set[str] | frozenset[str]) -> str:
    marker = ""
    if node.children:
        marker = "[-] " if node.id in expanded_rows else "[+] "
    return f"{INDENT * node.level}{marker}{node.label}"


def pivot_to_frame(
    result: PivotResult,
    visible_rows: Sequence[PivotNode],
    expanded_rows: set[str] | frozenset[str] = frozenset(),
    with_yoy: bool = False,
) -> pd.DataFrame:
    """Build the display table for a pivot.

    Args:
        result: Output of `build_pivot`.
        visible_rows: Output of `flatten_visible_rows` for the same forest.
        expanded_rows: Expanded node ids (used only for the +/- markers).
        with_yoy: Add a `YoY <title>` column after every value column.

    Returns:
        DataFrame with an `id` column, a `Row` column, one column per column
        key, and `Total`. The last row carries the column totals.
    """
    titles = [column_title(k) for k in result.col_keys]

    rows: list[dict[str, object]] = []
    for node in visible_rows:
        row: dict[str, object] = {"id": node.id, "Row": _row_label(node, expanded_rows)}
        for key, title in zip(result.col_keys, titles):
            row[title] = node.values.get(key, 0.0)
            if with_yoy:
                row[f"YoY {title}"] = format_yoy(yoy_delta(node, key))
        row["Total"] = node.row_total
        rows.append(row)

    total_row: dict[str, object] = {"id": "", "Row": GRAND_TOTAL_LABEL}
    for key, title in zip(result.col_keys, titles):
        value = result.col_totals.get(key, 0.0)
        total_row[title] = value
        if with_yoy:
            previous = result.col_totals.get(prior_col_key(key), 0.0)
            total_row[f"YoY {title}"] = format_yoy(compare(value, previous))
    total_row["Total"] = result.grand_total
    rows.append(total_row)

    columns = ["id", "Row"]
    for title in titles:
        columns.append(title)
        if with_yoy:
            columns.append(f"YoY {title}")
    columns.append("Total")
    return pd.DataFrame(rows, columns=columns)
