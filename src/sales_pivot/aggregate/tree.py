"""Pivot forest construction and visible-row flattening.

`build_pivot` makes a single pass over the records. Nodes are interned per
level in an auxiliary index (`_Branch`) that lives beside the nodes rather
than on them; once every record is consumed, `_finalize` walks the index
depth-first and attaches sorted `children` lists to the public nodes.

Expectations:
- Input: validated `AggregatedRecord` rows, in any order.
- Output: a `PivotResult` whose structure depends only on the inputs, so two
  runs over the same data compare equal.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence, Set
from dataclasses import dataclass, field
from functools import lru_cache

from sales_pivot.aggregate.columns import bucket_keys, derive_col_keys
from sales_pivot.models import (
    PATH_SEPARATOR,
    SENTINEL,
    AggregatedRecord,
    PivotNode,
    PivotResult,
    RowDimension,
)

log = logging.getLogger(__name__)


@dataclass
class _Branch:
    """Construction-time index entry: a node plus its children by label."""
    node: PivotNode
    children: dict[str, _Branch] = field(default_factory=dict)


def _is_blank(label: str | None) -> bool:
    return label is None or label.strip() == "" or label.strip() == SENTINEL


def label_path(record: AggregatedRecord, dimension: RowDimension) -> list[str]:
    """Return the record's row path for the given dimension.

    Blank or sentinel segments are skipped, so `A, -, C` nests `C` directly
    under `A`.
    """
    path: list[str] = []
    for name in dimension.label_fields:
        label = getattr(record, name)
        if _is_blank(label):
            continue
        path.append(label)
    return path


def _sort_key(node: PivotNode) -> tuple[str, str]:
    # case-insensitive first; on a tie lowercase sorts before uppercase
    return node.label.casefold(), node.label.swapcase()


def _finalize(index: dict[str, _Branch]) -> list[PivotNode]:
    nodes: list[PivotNode] = []
    for branch in index.values():
        node = branch.node
        if branch.children:
            node.children = _finalize(branch.children)
            node.is_leaf = False
        else:
            node.children = None
            node.is_leaf = True
        nodes.append(node)
    return sorted(nodes, key=_sort_key)


def build_pivot(
    records: Iterable[AggregatedRecord],
    row_dimension: RowDimension | str,
    expanded_years: Set[str] = frozenset(),
) -> PivotResult:
    """Aggregate records into a row forest, column keys and totals.

    Every record adds its amount to `grand_total` and to `col_totals` under
    its year, month and year-subtotal keys. Records whose label path is
    empty still count in those totals but produce no row node, so the grand
    total can exceed the sum of the root rows.

    Args:
        records: Validated records.
        row_dimension: Row hierarchy mode (enum member or its value).
        expanded_years: Year strings expanded into months on the column axis.

    Returns:
        `PivotResult` with sorted roots, ordered column keys and totals.

    Raises:
        ValueError: if `row_dimension` is not a known mode.
    """
    dimension = RowDimension(row_dimension)
    records = list(records)

    col_totals: dict[str, float] = {}
    grand_total = 0.0
    root_index: dict[str, _Branch] = {}
    unplaced = 0

    for rec in records:
        keys = bucket_keys(rec.year, rec.month)
        amount = rec.total_amount

        grand_total += amount
        for k in keys:
            col_totals[k] = col_totals.get(k, 0.0) + amount

        path = label_path(rec, dimension)
        if not path:
            unplaced += 1
            continue

        index = root_index
        for depth, label in enumerate(path):
            branch = index.get(label)
            if branch is None:
                branch = _Branch(
                    node=PivotNode(
                        id=PATH_SEPARATOR.join(path[: depth + 1]),
                        label=label,
                        level=depth,
                        is_leaf=depth == len(path) - 1,
                    )
                )
                index[label] = branch

            node = branch.node
            for k in keys:
                node.values[k] = node.values.get(k, 0.0) + amount
            node.row_total += amount
            index = branch.children

    if unplaced:
        log.debug("%d records had no row labels; counted in totals only", unplaced)

    return PivotResult(
        roots=_finalize(root_index),
        col_keys=derive_col_keys(records, expanded_years),
        col_totals=col_totals,
        grand_total=grand_total,
    )


@lru_cache(maxsize=16)
def build_pivot_cached(
    records: tuple[AggregatedRecord, ...],
    row_dimension: RowDimension | str,
    expanded_years: frozenset[str] = frozenset(),
) -> PivotResult:
    """Memoized `build_pivot`; callers must not mutate the returned result."""
    return build_pivot(records, row_dimension, expanded_years)


def flatten_visible_rows(
    roots: Sequence[PivotNode],
    expanded_rows: Set[str] = frozenset(),
) -> list[PivotNode]:
    """Return the rows to render, depth-first pre-order.

    A node's children are visited only when it has children and its id is in
    `expanded_rows`; collapsed subtrees contribute no rows.
    """
    rows: list[PivotNode] = []

    def _walk(nodes: Sequence[PivotNode]) -> None:
        for node in nodes:
            rows.append(node)
            if node.children and node.id in expanded_rows:
                _walk(node.children)

    _walk(roots)
    return rows


def iter_nodes(roots: Sequence[PivotNode]) -> Iterable[PivotNode]:
    """Yield every node in the forest regardless of expansion state."""
    for node in roots:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def expandable_ids(roots: Sequence[PivotNode]) -> set[str]:
    """Return the ids of every node that has children ("expand all")."""
    return {n.id for n in iter_nodes(roots) if n.children}
