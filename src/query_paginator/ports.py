"""Collaborator protocols - cache adapter and query executor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .compiler import CompiledQuery


class QueryResult(NamedTuple):
    """Rows of one page plus the unlimited row count."""

    items: list[Any]
    total: int


@runtime_checkable
class ICacheAdapter(Protocol):
    """
    String-keyed cache used for page envelopes and row counts.

    Implementations raise on failure; callers treat every error as a miss
    (reads) or log it (writes).
    """

    async def get(self, key: str) -> tuple[str | None, bool]:
        """Return ``(value, found)``."""
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store *value* under *key*, optionally expiring after *ttl* seconds."""
        ...

    async def is_valid(self, key: str) -> bool:
        """Return ``True`` when *key* holds an unexpired value."""
        ...

    async def clear_prefix(self, prefix: str) -> None:
        """Remove every key starting with *prefix*."""
        ...

    async def clear_all(self) -> None:
        """Remove every key owned by this adapter."""
        ...


@runtime_checkable
class IQueryExecutor(Protocol):
    """
    Data-access collaborator that runs a compiled query.

    Execution failures must be raised as
    :class:`~query_paginator.exceptions.QueryExecutionError`.
    """

    @property
    def dialect(self) -> str | None:
        """Dialect identifier used to resolve quoting and escaping."""
        ...

    @property
    def name(self) -> str:
        """Name of the queried table / view (row-count cache namespace)."""
        ...

    async def count(self, query: CompiledQuery) -> int:
        """Row count matching the predicate, ignoring limit/offset."""
        ...

    async def fetch(self, query: CompiledQuery, fields: Sequence[str]) -> list[Any]:
        """Rows for the requested window; *fields* empty selects every column."""
        ...
