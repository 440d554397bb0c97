"""Cleaning and normalization utilities.

The aggregator trusts its input, so malformed values are dealt with here:
the output is a pandas DataFrame whose schema is stable and suitable for
Pydantic validation.
"""
from __future__ import annotations

import logging

import pandas as pd

from sales_pivot.models import SENTINEL

log = logging.getLogger(__name__)

LABEL_COLUMNS = ("col_label_1", "col_label_2", "col_label_3")
RECORD_COLUMNS = ("year", "month", *LABEL_COLUMNS, "total_amount")


def clean_records_frame(pdf: pd.DataFrame) -> pd.DataFrame:
    """Clean raw aggregated sales rows.

    Coerces `year`, `month` and `total_amount` to numbers, fills missing
    amounts with 0, strips label whitespace and replaces missing/blank
    labels with the sentinel. Rows whose year or month cannot be parsed are
    dropped.

    Returns:
        Cleaned DataFrame with exactly the record columns.

    Raises:
        ValueError: if `year` or `month` is missing from the input.
    """
    log.info("Starting clean_records_frame on %d rows", len(pdf))

    missing = [c for c in ("year", "month") if c not in pdf.columns]
    if missing:
        raise ValueError(f"Record set is missing required columns: {missing}")

    pdf = pdf.copy()

    # -----------------------------
    # Numeric fields
    # -----------------------------
    pdf["year"] = pd.to_numeric(pdf["year"], errors="coerce")
    pdf["month"] = pd.to_numeric(pdf["month"], errors="coerce")
    if "total_amount" in pdf.columns:
        pdf["total_amount"] = pd.to_numeric(pdf["total_amount"], errors="coerce").fillna(0.0)
    else:
        pdf["total_amount"] = 0.0

    # -----------------------------
    # Labels
    # -----------------------------
    for col in LABEL_COLUMNS:
        if col not in pdf.columns:
            pdf[col] = SENTINEL
            continue
        pdf[col] = (
            pdf[col]
            .fillna("")
            .astype(str)
            .str.strip()
            .str.replace(r"\s+", " ", regex=True)
            .replace({"": SENTINEL, "nan": SENTINEL, "None": SENTINEL})
        )

    # -----------------------------
    # Drop unusable rows
    # -----------------------------
    bad = pdf["year"].isna() | pdf["month"].isna()
    if bad.any():
        log.warning("Dropping %d rows with unparseable year/month", int(bad.sum()))
        pdf = pdf[~bad].copy()

    pdf["year"] = pdf["year"].astype(int)
    pdf["month"] = pdf["month"].astype(int)

    return pdf[list(RECORD_COLUMNS)].reset_index(drop=True)
