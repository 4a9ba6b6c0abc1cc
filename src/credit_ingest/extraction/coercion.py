"""Tolerant coercion of raw tree leaves into typed values.

None of the helpers here raise: missing, empty, or malformed input always
degrades to the caller-supplied default (or ``None`` for dates).
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

LOGGER = logging.getLogger(__name__)

# Placeholder dates emitted by the bureau in place of an unknown date.
SENTINEL_DATES = frozenset({"00010201", "00000000", "0001-02-01", "0000-00-00"})

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+)(\.\d*)?$|^[+-]?\.\d+$")
_TEN_CHAR_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def to_text(raw: Any) -> Optional[str]:
    """Return the trimmed text content of a leaf, or ``None`` when there is none.

    Elements that carry both attributes and text arrive as a mapping with the
    text stored under ``"_"``.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, (int, float)):
        return str(raw)
    if isinstance(raw, Mapping):
        return to_text(raw.get("_"))
    return None


def _clean_number(raw: Any) -> Optional[str]:
    text = to_text(raw)
    if not text:
        return None
    text = text.replace(",", "").replace(" ", "")
    if not _NUMBER_PATTERN.match(text):
        return None
    return text


def to_int(raw: Any, default: Optional[int] = 0) -> Optional[int]:
    """Coerce ``raw`` into an integer, truncating any fractional part."""

    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else default
    text = _clean_number(raw)
    if text is None:
        return default
    try:
        return int(float(text)) if "." in text else int(text)
    except (ValueError, OverflowError):
        return default


def to_decimal(raw: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce ``raw`` into a float (interest rates, percentages)."""

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        return value if math.isfinite(value) else default
    text = _clean_number(raw)
    if text is None:
        return default
    try:
        value = float(text)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def is_sentinel_date(raw: Any) -> bool:
    """Return True when ``raw`` is one of the bureau's "no date" placeholders."""

    text = to_text(raw)
    return bool(text) and text in SENTINEL_DATES


def to_date(raw: Any) -> Optional[date]:
    """Parse ``YYYYMMDD``, ``YYYY-MM-DD`` or ``YYYY/MM/DD`` into a :class:`date`.

    Anything else yields ``None``, including day-first text such as
    ``15/01/2023``, sentinel placeholders and impossible calendar dates.
    """

    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = to_text(raw)
    if not text or is_sentinel_date(text):
        return None

    if len(text) == 8:
        if not text.isdigit():
            return None
        try:
            return date(int(text[0:4]), int(text[4:6]), int(text[6:8]))
        except ValueError:
            LOGGER.debug("Discarding invalid calendar date %r", text)
            return None

    if len(text) == 10:
        for fmt in _TEN_CHAR_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        LOGGER.debug("Discarding unparseable date %r", text)
        return None

    return None


__all__ = ["SENTINEL_DATES", "is_sentinel_date", "to_date", "to_decimal", "to_int", "to_text"]
