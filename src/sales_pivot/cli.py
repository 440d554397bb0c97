"""Command-line interface for the sales pivot toolkit.

Provides subcommands: `fetch`, `pivot`, `trend`, and `refresh`. Each command
is implemented as a `cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
import pandas as pd

from sales_pivot.config import get_settings
from sales_pivot.logging_config import configure_logging
from sales_pivot.models import AggregatedRecord, RowDimension

# INGEST
from sales_pivot.ingest.fetch_records import AnalyticsQuery, fetch_records, refresh_sales_data
from sales_pivot.ingest.load_file import load_records, prepare_records

# AGGREGATE
from sales_pivot.aggregate.formatting import format_amount
from sales_pivot.aggregate.frame import pivot_to_frame
from sales_pivot.aggregate.tree import build_pivot, expandable_ids, flatten_visible_rows
from sales_pivot.aggregate.trend import build_trend

log = logging.getLogger(__name__)

DIMENSIONS = [d.value for d in RowDimension]


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _query_from_args(args: argparse.Namespace) -> AnalyticsQuery:
    """Build an AnalyticsQuery from the shared filter options."""
    return AnalyticsQuery(
        dimension=RowDimension(args.dimension),
        years=args.year or ["All"],
        months=[str(m) for m in args.month] if args.month else ["All"],
        areas=args.area or ["All"],
        business_areas=args.business_area or ["All"],
        products=args.product or ["All"],
    )


def _load(args: argparse.Namespace) -> list[AggregatedRecord]:
    """Return validated records from `--input` or from the backend."""
    if getattr(args, "input", None):
        return load_records(Path(args.input))

    s = get_settings()
    rows = fetch_records(_query_from_args(args), s, force=getattr(args, "force", False))
    return prepare_records(rows)


def _format_frame(pdf: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with numeric columns rendered as display strings."""
    out = pdf.copy()
    for col in out.columns:
        if pd.api.types.is_numeric_dtype(out[col]) and col != "year":
            out[col] = out[col].map(format_amount)
    return out


def _emit(pdf: pd.DataFrame, out: str | None) -> None:
    if out:
        path = Path(out)
        path.parent.mkdir(parents=True, exist_ok=True)
        pdf.to_csv(path, index=False)
        log.info("Wrote %d rows to %s", len(pdf), path)
    else:
        print(_format_frame(pdf).to_string(index=False))


# --------------------------------------------------
# FETCH
# --------------------------------------------------
def cmd_fetch(args: argparse.Namespace) -> None:
    """Fetch records for the requested filters and save them as JSON.

    Args:
        args: argparse namespace with filters, `force` and `out`.
    """
    s = get_settings()
    rows = fetch_records(_query_from_args(args), s, force=args.force)

    if args.out:
        path = Path(args.out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        log.info("Saved %d records to %s", len(rows), path)

    log.info("Fetch completed.")


# --------------------------------------------------
# PIVOT
# --------------------------------------------------
def cmd_pivot(args: argparse.Namespace) -> None:
    """Build the pivot table and print it or write it to CSV.

    Args:
        args: argparse namespace with `input`/filters, `dimension`,
            `expand_year`, `expand_row`, `expand_all`, `yoy` and `out`.
    """
    records = _load(args)
    if not records:
        log.warning("No records to pivot.")

    result = build_pivot(records, args.dimension, frozenset(args.expand_year or []))
    expanded_rows: set[str] = set(args.expand_row or [])
    if args.expand_all:
        expanded_rows |= expandable_ids(result.roots)

    visible = flatten_visible_rows(result.roots, expanded_rows)
    log.info(
        "Pivot: %d root rows, %d visible, %d columns, grand total %s",
        len(result.roots),
        len(visible),
        len(result.col_keys),
        format_amount(result.grand_total),
    )

    pdf = pivot_to_frame(result, visible, expanded_rows, with_yoy=args.yoy)
    _emit(pdf.drop(columns=["id"]), args.out)


# --------------------------------------------------
# TREND
# --------------------------------------------------
def cmd_trend(args: argparse.Namespace) -> None:
    """Print yearly totals with a per-month breakdown."""
    records = _load(args)
    _emit(build_trend(records), args.out)


# --------------------------------------------------
# REFRESH
# --------------------------------------------------
def cmd_refresh(_: argparse.Namespace) -> None:
    """Trigger the backend's rebuild of aggregated sales data."""
    refresh_sales_data(get_settings())


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", default=None, help="Local .json/.csv/.xlsx export instead of the backend")
    p.add_argument("--dimension", choices=DIMENSIONS, default=RowDimension.BUSINESS_AREA.value)
    p.add_argument("--year", action="append", default=None)
    p.add_argument("--month", action="append", type=int, choices=range(1, 13), default=None)
    p.add_argument("--area", action="append", default=None)
    p.add_argument("--business-area", action="append", default=None)
    p.add_argument("--product", action="append", default=None)
    p.add_argument("--force", action="store_true")
    p.add_argument("--out", default=None)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    The returned parser has subcommands `fetch`, `pivot`, `trend` and
    `refresh`; the first three share the data-source and filter options.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="sales_pivot")
    p.add_argument("--log-file", default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser("fetch")
    _add_source_args(p_fetch)

    p_pivot = sub.add_parser("pivot")
    _add_source_args(p_pivot)
    p_pivot.add_argument("--expand-year", action="append", default=None)
    p_pivot.add_argument("--expand-row", action="append", default=None)
    p_pivot.add_argument("--expand-all", action="store_true")
    p_pivot.add_argument("--yoy", action="store_true")

    p_trend = sub.add_parser("trend")
    _add_source_args(p_trend)

    sub.add_parser("refresh")

    return p


COMMANDS: dict[str, Any] = {
    "fetch": cmd_fetch,
    "pivot": cmd_pivot,
    "trend": cmd_trend,
    "refresh": cmd_refresh,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    s = get_settings(require_backend=False)
    configure_logging(Path(args.log_file) if args.log_file else None, s.log_level)

    handler = COMMANDS.get(args.cmd)
    if handler is None:
        raise SystemExit(2)
    handler(args)


if __name__ == "__main__":
    main()
