"""Year-over-year comparison for a node and column key."""
from __future__ import annotations

from dataclasses import dataclass

from sales_pivot.models import PivotNode


@dataclass(frozen=True)
class YoYDelta:
    """Comparison of a cell against the same cell one year earlier.

    Attributes:
        current: Value in the requested column.
        previous: Value in the prior-year column (never zero here).
        percent: Signed change in percent; None when `current` is zero.
    """
    current: float
    previous: float
    percent: float | None

    @property
    def is_placeholder(self) -> bool:
        return self.percent is None

    @property
    def direction(self) -> str:
        if self.percent is None or self.percent == 0:
            return "flat"
        return "up" if self.percent > 0 else "down"


def prior_col_key(col_key: str) -> str:
    """Return the same-shaped key one year earlier.

    `"2024"` → `"2023"`, `"2024-03"` → `"2023-03"`,
    `"2024-Total"` → `"2023-Total"`.
    """
    year, sep, rest = col_key.partition("-")
    return f"{int(year) - 1}{sep}{rest}"


def compare(current: float, previous: float) -> YoYDelta | None:
    """Compare two values.

    None when the prior value is zero or negative.
    """
    if previous <= 0:
        return None
    if current == 0:
        return YoYDelta(current=current, previous=previous, percent=None)
    return YoYDelta(
        current=current,
        previous=previous,
        percent=(current - previous) / previous * 100.0,
    )


def yoy_delta(node: PivotNode, col_key: str) -> YoYDelta | None:
    """Compare `node`'s value in `col_key` with its prior-year value.

    Missing keys count as zero.
    """
    current = node.values.get(col_key, 0.0)
    previous = node.values.get(prior_col_key(col_key), 0.0)
    return compare(current, previous)


def format_yoy(delta: YoYDelta | None) -> str:
    if delta is None:
        return ""
    if delta.percent is None:
        return "-"
    arrow = {"up": "▲ ", "down": "▼ ", "flat": ""}[delta.direction]
    return f"{arrow}{abs(delta.percent):.1f}%"
