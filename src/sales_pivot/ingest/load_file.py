"""Read record sets from local exports and prepare them for pivoting.

`read_records_file` handles `.json`, `.csv` and `.xlsx`; `prepare_records`
runs the clean → validate chain shared with the backend fetch path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from sales_pivot.clean.transform import clean_records_frame
from sales_pivot.clean.validate import validate_records
from sales_pivot.models import AggregatedRecord

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".json", ".csv", ".xlsx")


def read_records_file(path: Path) -> pd.DataFrame:
    """Read an export of aggregated records into a DataFrame.

    Args:
        path: File ending in `.json` (array of objects), `.csv` or `.xlsx`.

    Returns:
        Raw, uncleaned DataFrame.

    Raises:
        FileNotFoundError: if `path` does not exist.
        ValueError: for unsupported file types.
    """
    if not path.exists():
        raise FileNotFoundError(path)

    suffix = path.suffix.lower()
    if suffix == ".json":
        pdf = pd.read_json(path, orient="records", dtype=False)
    elif suffix == ".csv":
        pdf = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix == ".xlsx":
        pdf = pd.read_excel(path, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file type {suffix!r}; expected one of {SUPPORTED_SUFFIXES}")

    log.info("Read %d rows from %s", len(pdf), path)
    return pdf


def prepare_records(
    rows: pd.DataFrame | Iterable[Mapping[str, Any]],
) -> list[AggregatedRecord]:
    """Clean and validate raw rows, returning only the valid records."""
    pdf = rows if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows))
    if pdf.empty:
        return []

    good, bad = validate_records(clean_records_frame(pdf))
    log.info("Prepared %d records (bad=%d)", len(good), bad)
    return good


def load_records(path: Path) -> list[AggregatedRecord]:
    """Read, clean and validate a local export in one step."""
    return prepare_records(read_records_file(path))
