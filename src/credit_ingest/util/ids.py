"""Identifier helpers."""

from __future__ import annotations

import secrets
import time

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_upload_id(now_ms: int | None = None) -> str:
    """Return a human-readable upload reference such as ``REP-LU4K9Z2A-3F9QXZ``."""

    timestamp = to_base36(now_ms if now_ms is not None else int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(6))
    return f"REP-{timestamp}-{random_part}".upper()


__all__ = ["generate_upload_id", "to_base36"]
