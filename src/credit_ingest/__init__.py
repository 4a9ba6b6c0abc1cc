"""credit_ingest: ingestion and normalization of credit-bureau XML reports.

This package contains the ingestion pipeline that tracks uploaded bureau
documents through processing, and the extraction engine that turns the
loosely-typed parsed XML tree into a typed, validated credit report record.
"""
