"""Extraction and normalization of parsed credit-bureau report trees.

The extractor walks the loosely-typed tree produced by
:mod:`credit_ingest.parsing.xml_tree` and recovers a typed
:class:`~credit_ingest.extraction.schema.ExtractedReport`.
"""

from credit_ingest.extraction.errors import ExtractionError, IdentityNotFoundError
from credit_ingest.extraction.extractor import extract
from credit_ingest.extraction.schema import ExtractedReport

__all__ = ["ExtractedReport", "ExtractionError", "IdentityNotFoundError", "extract"]
