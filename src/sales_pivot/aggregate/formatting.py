"""Number formatting for table cells and chart axes."""
from __future__ import annotations

import math

EMPTY_CELL = "-"


def format_amount(value: float | None, max_decimals: int = 3) -> str:
    """Format an amount the way the dashboard shows it (id-ID grouping).

    Zero, None and NaN render as `-`. Thousands are grouped with `.` and
    decimals use `,`; at most `max_decimals` fraction digits are kept and
    trailing zeros dropped.

    Examples:
        >>> format_amount(1234567.5)
        '1.234.567,5'
        >>> format_amount(0)
        '-'
    """
    if value is None or value == 0 or (isinstance(value, float) and math.isnan(value)):
        return EMPTY_CELL

    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", "0"):
        return EMPTY_CELL
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def axis_label(value: float) -> str:
    """Short label for chart axis ticks (billions as `1.5M`, millions as `12M`)."""
    if value >= 1_000_000_000:
        text = f"{value / 1_000_000_000:.1f}"
        if text.endswith(".0"):
            text = text[:-2]
        return f"{text}M"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.0f}M"
    if float(value).is_integer():
        return str(int(value))
    return str(value)
