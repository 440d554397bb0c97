"""Models used at the ingestion boundary and for pivot output.

`AggregatedRecord` is the Pydantic schema every incoming row is validated
against. The pivot output types are plain dataclasses: they are derived,
never validated, and rebuilt from scratch on each aggregation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

SENTINEL = "-"
PATH_SEPARATOR = "|"


class RowDimension(str, Enum):
    """Row hierarchy modes and the label fields each one nests."""

    HIERARCHY_ACCOUNT = "hierarchy_account"
    HIERARCHY_BA_PSS = "hierarchy_ba_pss"
    BUSINESS_AREA = "business_area"
    PRODUCT = "product"

    @property
    def label_fields(self) -> tuple[str, ...]:
        if self is RowDimension.HIERARCHY_ACCOUNT:
            return ("col_label_1", "col_label_2", "col_label_3")
        if self is RowDimension.HIERARCHY_BA_PSS:
            return ("col_label_1", "col_label_2")
        return ("col_label_1",)

    @property
    def level_columns(self) -> tuple[str, str, str, str]:
        """Source column per hierarchy level, padded with "" for unused levels."""
        return LEVEL_COLUMNS[self]

    @property
    def display_name(self) -> str:
        return ROW_DIMENSION_TITLES[self]


LEVEL_COLUMNS = {
    RowDimension.HIERARCHY_ACCOUNT: ("key_account_type", "cust_group", "business_area", ""),
    RowDimension.HIERARCHY_BA_PSS: ("business_area", "pss", "", ""),
    RowDimension.BUSINESS_AREA: ("business_area", "", "", ""),
    RowDimension.PRODUCT: ("product", "", "", ""),
}

ROW_DIMENSION_TITLES = {
    RowDimension.HIERARCHY_ACCOUNT: "Hierarki: Account > Group > Biz Area",
    RowDimension.HIERARCHY_BA_PSS: "Hierarki: Business Area > PSS",
    RowDimension.BUSINESS_AREA: "Business Area",
    RowDimension.PRODUCT: "Product",
}


class AggregatedRecord(BaseModel):
    """Schema for one (year, month, label path) bucket from the backend.

    Attributes:
        year: Calendar year of the bucket.
        month: Month number (1-12).
        col_label_1: First hierarchy label.
        col_label_2: Second hierarchy label, or the sentinel.
        col_label_3: Third hierarchy label, or the sentinel.
        total_amount: Summed sales amount; may be negative (returns/credits).
    """
    model_config = ConfigDict(extra="ignore", frozen=True)
    year: int = Field(..., ge=1900, le=2100)
    month: int = Field(..., ge=1, le=12)
    col_label_1: str = SENTINEL
    col_label_2: str = SENTINEL
    col_label_3: str = SENTINEL
    total_amount: float = 0.0


@dataclass
class PivotNode:
    """One row of the pivot forest.

    `id` is the label path joined with `PATH_SEPARATOR`; expansion state is
    keyed by it. `children` is None on leaves.
    """
    id: str
    label: str
    level: int
    is_leaf: bool
    values: dict[str, float] = field(default_factory=dict)
    row_total: float = 0.0
    children: list[PivotNode] | None = None


@dataclass(frozen=True)
class HeaderInfo:
    """Classification of a column key for rendering and YoY lookup."""
    type: str  # "year" | "month" | "subtotal"
    label: str
    parent: str


@dataclass
class PivotResult:
    """Output of one aggregation run."""
    roots: list[PivotNode]
    col_keys: list[str]
    col_totals: dict[str, float]
    grand_total: float
