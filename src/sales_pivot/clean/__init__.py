"""Cleaning utilities for incoming record sets.

Provides functions to normalize raw rows (numeric coercion, label
whitespace, sentinel fill) and validate them against the Pydantic
`AggregatedRecord` schema before they reach the aggregator.
"""
