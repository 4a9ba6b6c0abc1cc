"""Data store package for credit_ingest.

Persistence for ingestion records (report status, extracted report data, and
the raw parsed tree) and for the audit trail of ingestion actions.
"""
