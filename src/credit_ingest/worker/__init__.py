"""Standalone job entrypoints for credit_ingest."""
