"""Pivot aggregation helpers.

This package turns a validated list of `AggregatedRecord` rows into the
hierarchical pivot forest (row tree, dynamic year/month column axis,
column totals) plus the derived views the dashboard renders: visible-row
flattening, header classification, year-over-year deltas, yearly trends and
number formatting.
"""
