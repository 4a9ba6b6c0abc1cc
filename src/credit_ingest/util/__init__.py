"""Utility package for credit_ingest.

Shared helpers that do not belong to a more specific domain like extraction,
storage, or the ingestion services.
"""
