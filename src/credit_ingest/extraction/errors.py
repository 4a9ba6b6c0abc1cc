"""Exceptions raised by the extraction engine."""

from __future__ import annotations

PAN_NOT_FOUND_MESSAGE = "PAN number not found in XML file"


class ExtractionError(RuntimeError):
    """Raised when a parsed report tree cannot be turned into a report record."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class IdentityNotFoundError(ExtractionError):
    """Raised when no account in the report carries a PAN."""

    def __init__(self, message: str = PAN_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)


__all__ = ["ExtractionError", "IdentityNotFoundError", "PAN_NOT_FOUND_MESSAGE"]
