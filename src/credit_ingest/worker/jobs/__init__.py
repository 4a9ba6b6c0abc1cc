"""Command-line jobs runnable with ``python -m credit_ingest.worker.jobs.<name>``."""
