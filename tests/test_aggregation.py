from __future__ import annotations

import pytest

from sales_pivot.aggregate.tree import build_pivot, build_pivot_cached, iter_nodes
from sales_pivot.models import AggregatedRecord


def _rec(year: int, month: int, l1: str = "-", l2: str = "-", l3: str = "-", amount: float = 0.0) -> AggregatedRecord:
    return AggregatedRecord(
        year=year, month=month, col_label_1=l1, col_label_2=l2, col_label_3=l3, total_amount=amount
    )


SCENARIO = [
    _rec(2023, 1, "A", amount=100),
    _rec(2023, 2, "A", amount=50),
    _rec(2024, 1, "A", amount=200),
]

HIERARCHY = [
    _rec(2023, 1, "Sales", "Retail", "North", 10),
    _rec(2023, 1, "Sales", "Retail", "South", 20),
    _rec(2023, 3, "Sales", "Retail", "North", 5),
    _rec(2023, 2, "Sales", "Corporate", "North", -7),
    _rec(2024, 1, "Costs", "Freight", "North", 40),
    _rec(2024, 6, "Sales", "Retail", "North", 1.5),
]


def test_concrete_scenario_business_area() -> None:
    res = build_pivot(SCENARIO, "business_area")
    assert res.col_keys == ["2023", "2024"]
    assert len(res.roots) == 1
    node = res.roots[0]
    assert node.id == "A"
    assert node.is_leaf
    assert node.children is None
    assert node.values == {
        "2023": 150,
        "2023-01": 100,
        "2023-02": 50,
        "2023-Total": 150,
        "2024": 200,
        "2024-01": 200,
        "2024-Total": 200,
    }
    assert node.row_total == 350
    assert res.grand_total == 350


def test_expanding_a_column_year() -> None:
    res = build_pivot(SCENARIO, "business_area", frozenset({"2023"}))
    assert res.col_keys == ["2023-01", "2023-02", "2023-Total", "2024"]


def test_grand_total_is_sum_of_amounts() -> None:
    res = build_pivot(HIERARCHY, "hierarchy_account")
    assert res.grand_total == pytest.approx(sum(r.total_amount for r in HIERARCHY))
    assert sum(n.row_total for n in res.roots) == pytest.approx(res.grand_total)


def test_bucket_consistency_for_every_node() -> None:
    res = build_pivot(HIERARCHY, "hierarchy_account")
    for node in iter_nodes(res.roots):
        years = {k for k in node.values if "-" not in k}
        for y in years:
            months = [v for k, v in node.values.items() if k.startswith(f"{y}-") and not k.endswith("Total")]
            assert node.values[y] == pytest.approx(sum(months))
            assert node.values[y] == pytest.approx(node.values[f"{y}-Total"])
        assert node.row_total == pytest.approx(sum(node.values[y] for y in years))


def test_children_totals_roll_up() -> None:
    res = build_pivot(HIERARCHY, "hierarchy_account")
    for node in iter_nodes(res.roots):
        if node.children:
            assert node.row_total == pytest.approx(sum(c.row_total for c in node.children))


def test_ids_levels_and_sorting() -> None:
    res = build_pivot(HIERARCHY, "hierarchy_account")
    assert [n.label for n in res.roots] == ["Costs", "Sales"]
    sales = res.roots[1]
    assert sales.id == "Sales" and sales.level == 0 and not sales.is_leaf
    assert [c.label for c in sales.children] == ["Corporate", "Retail"]
    retail = sales.children[1]
    assert retail.id == "Sales|Retail" and retail.level == 1
    assert [c.id for c in retail.children] == ["Sales|Retail|North", "Sales|Retail|South"]
    north = retail.children[0]
    assert north.is_leaf and north.level == 2
    assert north.row_total == pytest.approx(16.5)


def test_two_level_dimension_stops_at_second_label() -> None:
    res = build_pivot(HIERARCHY, "hierarchy_ba_pss")
    sales = next(n for n in res.roots if n.label == "Sales")
    assert all(c.is_leaf and c.children is None for c in sales.children)


def test_duplicate_labels_merge() -> None:
    records = [_rec(2023, 1, "A", amount=1), _rec(2023, 1, "A", amount=2), _rec(2023, 2, "a", amount=4)]
    res = build_pivot(records, "product")
    assert [n.label for n in res.roots] == ["a", "A"]
    by_label = {n.label: n for n in res.roots}
    assert by_label["A"].values["2023-01"] == 3


def test_negative_amounts_sum() -> None:
    records = [_rec(2023, 1, "A", amount=100), _rec(2023, 1, "A", amount=-30)]
    res = build_pivot(records, "business_area")
    assert res.roots[0].values["2023"] == 70
    assert res.col_totals["2023-01"] == 70


def test_sentinel_levels_make_a_shallow_leaf() -> None:
    records = [_rec(2023, 1, "Sales", "-", "-", 25)]
    res = build_pivot(records, "hierarchy_account")
    assert len(res.roots) == 1
    node = res.roots[0]
    assert node.level == 0 and node.is_leaf and node.children is None
    assert res.grand_total == 25


def test_embedded_sentinel_or_blank_is_skipped() -> None:
    for middle in ("-", "  ", ""):
        res = build_pivot([_rec(2023, 1, "A", middle, "C", 25)], "hierarchy_account")
        assert [n.id for n in iter_nodes(res.roots)] == ["A", "A|C"]
        child = res.roots[0].children[0]
        assert child.level == 1 and child.is_leaf
        assert child.row_total == 25


def test_empty_path_counts_in_totals_but_not_rows() -> None:
    # records without labels are invisible in the rows yet still counted
    records = [_rec(2023, 1, "A", amount=10), _rec(2023, 1, "-", amount=5)]
    res = build_pivot(records, "business_area")
    assert [n.id for n in res.roots] == ["A"]
    assert res.grand_total == 15
    assert res.col_totals["2023"] == 15
    assert sum(n.row_total for n in res.roots) == 10


def test_empty_input() -> None:
    res = build_pivot([], "hierarchy_account")
    assert res.roots == []
    assert res.col_keys == []
    assert res.col_totals == {}
    assert res.grand_total == 0


def test_idempotent_and_order_independent() -> None:
    first = build_pivot(HIERARCHY, "hierarchy_account", frozenset({"2023"}))
    second = build_pivot(HIERARCHY, "hierarchy_account", frozenset({"2023"}))
    shuffled = build_pivot(list(reversed(HIERARCHY)), "hierarchy_account", frozenset({"2023"}))
    assert first == second
    assert first == shuffled


def test_unknown_dimension_rejected() -> None:
    with pytest.raises(ValueError):
        build_pivot(SCENARIO, "region")


def test_cached_build_reuses_result() -> None:
    records = tuple(SCENARIO)
    a = build_pivot_cached(records, "business_area", frozenset())
    b = build_pivot_cached(records, "business_area", frozenset())
    assert a is b
    assert a == build_pivot(SCENARIO, "business_area")
