"""Reference data for bureau code normalization.

Maps the numeric account type and account status codes used by the bureau's
CAIS (credit account information) section to canonical labels. Unknown codes
fall back to a fixed label instead of raising.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from credit_ingest.extraction.coercion import to_int

DEFAULT_ACCOUNT_TYPE = "Other Credit Facility"
DEFAULT_ACCOUNT_STATUS = "unknown"

ACCOUNT_TYPE_LABELS: Mapping[int, str] = MappingProxyType(
    {
        10: "Credit Card",
        51: "Home Loan",
        52: "Personal Loan",
        53: "Auto Loan",
        71: "Business Loan",
    }
)

ACCOUNT_STATUS_LABELS: Mapping[int, str] = MappingProxyType(
    {
        11: "active",
        13: "closed",
        53: "default",
        71: "delinquent",
    }
)


def map_account_type(code: Any) -> str:
    """Return the canonical account type label for a bureau code."""

    key = to_int(code, default=None)
    return ACCOUNT_TYPE_LABELS.get(key, DEFAULT_ACCOUNT_TYPE)


def map_account_status(code: Any) -> str:
    """Return the canonical account status label for a bureau code."""

    key = to_int(code, default=None)
    return ACCOUNT_STATUS_LABELS.get(key, DEFAULT_ACCOUNT_STATUS)


__all__ = [
    "ACCOUNT_STATUS_LABELS",
    "ACCOUNT_TYPE_LABELS",
    "DEFAULT_ACCOUNT_STATUS",
    "DEFAULT_ACCOUNT_TYPE",
    "map_account_status",
    "map_account_type",
]
