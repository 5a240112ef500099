"""
Exception hierarchy for the stat block converter.

Field extraction and conversion never raise; these exceptions only
surface at the top-level dispatch boundary, when the caller explicitly
asks for something that cannot be honoured.
"""

from __future__ import annotations

from typing import Any


class StatblockError(Exception):
    """Base exception for all stat block converter errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary of additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize the error.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParseError(StatblockError):
    """Raised when raw input cannot be turned into a creature at all."""


class InvalidJSONError(ParseError):
    """Raised when a JSON system was requested but the input is not valid JSON.

    Attributes:
        position: Character offset where decoding failed, if known
    """

    def __init__(
        self,
        message: str,
        position: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.position = position


class UnknownSystemError(StatblockError):
    """Raised when an explicitly requested system has no registered extractor.

    Attributes:
        system_id: The identifier that was requested
        available: Identifiers that are registered
    """

    def __init__(
        self,
        system_id: str,
        available: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        available = available or []
        message = f"No parser registered for system '{system_id}'"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message, details)
        self.system_id = system_id
        self.available = available


__all__ = [
    "StatblockError",
    "ParseError",
    "InvalidJSONError",
    "UnknownSystemError",
]
