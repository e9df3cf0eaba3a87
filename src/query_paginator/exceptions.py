"""
Paginator exception hierarchy.

All exceptions inherit from ``PaginationError`` and provide
``to_dict()`` for API-friendly error responses.  Malformed client input
never escapes the public API as one of these; they are raised by strict
helpers and by the collaborators (executors, cache adapters) and are
caught, logged, or surfaced in the page envelope by the paginator.
"""

from __future__ import annotations

from typing import Any


class PaginationError(Exception):
    """Base exception for all paginator errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class FilterParseError(PaginationError):
    """Filter expression could not be decoded."""

    def __init__(self, message: str, raw: Any = None) -> None:
        self.message = message
        self.raw = raw
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FILTER_PARSE_ERROR",
            "message": self.message,
        }


class ConfigurationError(PaginationError):
    """Configuration object is missing or invalid.

    Logged at construction time; defaults substitute.
    """


class QueryExecutionError(PaginationError):
    """The data-access collaborator failed to run the compiled query."""

    def __init__(self, message: str, statement: str | None = None) -> None:
        self.message = message
        self.statement = statement
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "QUERY_EXECUTION_ERROR",
            "message": self.message,
        }


class CacheAdapterError(PaginationError):
    """A cache adapter operation failed."""

    def __init__(self, operation: str, key: str | None, reason: str) -> None:
        self.operation = operation
        self.key = key
        self.reason = reason
        msg = f"Cache {operation} failed"
        if key is not None:
            msg += f" for key {key!r}"
        super().__init__(f"{msg}: {reason}")
