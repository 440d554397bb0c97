"""Validation utilities for incoming records.

This module validates rows against the Pydantic `AggregatedRecord` model.
Bad rows are counted, not raised, so one malformed bucket does not sink a
whole dashboard refresh.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd
from pydantic import ValidationError

from sales_pivot.models import AggregatedRecord

log = logging.getLogger(__name__)


def validate_records(
    rows: pd.DataFrame | Iterable[Mapping[str, Any]],
) -> tuple[list[AggregatedRecord], int]:
    """Validate rows using Pydantic.

    Args:
        rows: A DataFrame or an iterable of dict-like rows.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict(orient="records")

    good: list[AggregatedRecord] = []
    bad = 0

    for rec in rows:
        try:
            good.append(AggregatedRecord.model_validate(dict(rec)))
        except ValidationError as exc:
            bad += 1
            log.debug("Rejected record %r: %s", rec, exc.errors()[0].get("msg"))

    if bad:
        log.warning("Validation rejected %d of %d records", bad, bad + len(good))
    return good, bad
