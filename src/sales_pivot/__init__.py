"""sales_pivot package.

Contains modules for fetching aggregated sales records from the hosted
analytics backend (or reading spreadsheet exports), cleaning & validating
them, building the hierarchical pivot table with year-over-year deltas, and
utilities for serving a Streamlit dashboard.

Architecture:
- Ingest → Clean → Aggregate layers, all in memory
- pandas is used for file ingestion and table rendering
- Pydantic models validate records at the ingestion boundary
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
