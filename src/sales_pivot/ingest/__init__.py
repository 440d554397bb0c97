"""Ingestion helpers: backend RPC fetches and local file exports."""
