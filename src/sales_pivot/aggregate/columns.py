"""Column axis derivation and header classification.

Column keys come in three shapes:
- `"YYYY"`: a collapsed year
- `"YYYY-MM"`: one month of an expanded year (zero-padded month)
- `"YYYY-Total"`: the subtotal that follows an expanded year's months
"""
from __future__ import annotations

from collections.abc import Iterable, Set

from sales_pivot.models import AggregatedRecord, HeaderInfo

SUBTOTAL_SUFFIX = "-Total"

MONTH_LABELS = {
    1: "Jan", 2: "Feb", 3: "Mar", 4: "Apr", 5: "Mei", 6: "Jun",
    7: "Jul", 8: "Agu", 9: "Sep", 10: "Okt", 11: "Nov", 12: "Des",
}


def year_key(year: int) -> str:
    return str(year)


def month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def subtotal_key(year: int | str) -> str:
    return f"{year}{SUBTOTAL_SUFFIX}"


def bucket_keys(year: int, month: int) -> tuple[str, str, str]:
    """Return the three keys a single record contributes to."""
    return year_key(year), month_key(year, month), subtotal_key(year)


def derive_col_keys(
    records: Iterable[AggregatedRecord],
    expanded_years: Set[str] = frozenset(),
) -> list[str]:
    """Return the ordered column keys to render.

    Years are sorted ascending as strings (four-digit years sort correctly).
    An expanded year contributes one key per month present in the data,
    ascending, followed by its subtotal key; a collapsed year contributes a
    single year key.

    Args:
        records: Input records; only `year` and `month` are read.
        expanded_years: Year strings currently expanded into months.

    Returns:
        Column keys in display order.
    """
    months_by_year: dict[str, set[int]] = {}
    for rec in records:
        months_by_year.setdefault(year_key(rec.year), set()).add(rec.month)

    keys: list[str] = []
    for year in sorted(months_by_year):
        if year in expanded_years:
            keys.extend(month_key(int(year), m) for m in sorted(months_by_year[year]))
            keys.append(subtotal_key(year))
        else:
            keys.append(year)
    return keys


def header_info(col_key: str) -> HeaderInfo:
    """Classify a column key as a year, month or subtotal column.

    Raises:
        ValueError: if the key matches none of the three shapes.
    """
    if SUBTOTAL_SUFFIX in col_key:
        return HeaderInfo(type="subtotal", label="TOTAL", parent=col_key.split("-")[0])

    parts = col_key.split("-")
    if len(parts) == 2:
        year, month = parts
        try:
            label = MONTH_LABELS.get(int(month), month)
        except ValueError:
            label = month
        return HeaderInfo(type="month", label=label, parent=year)
    if len(parts) == 1:
        return HeaderInfo(type="year", label=col_key, parent=col_key)

    raise ValueError(f"Unrecognized column key: {col_key!r}")
