"""Shared fixtures for query-paginator tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from query_paginator import MemoryCacheAdapter, PaginatorConfig
from query_paginator.exceptions import QueryExecutionError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from query_paginator import CompiledQuery


class FakeExecutor:
    """In-memory IQueryExecutor that records what it was asked to run."""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        *,
        dialect: str | None = None,
        name: str = "users",
        error: Exception | None = None,
        total: Callable[[CompiledQuery], int] | None = None,
    ) -> None:
        self.rows = rows if rows is not None else []
        self._dialect = dialect
        self._name = name
        self._error = error
        self._total = total
        self.count_calls = 0
        self.fetch_calls = 0
        self.queries: list[CompiledQuery] = []
        self.fields: list[list[str]] = []

    @property
    def dialect(self) -> str | None:
        return self._dialect

    @property
    def name(self) -> str:
        return self._name

    async def count(self, query: CompiledQuery) -> int:
        self.count_calls += 1
        if self._error is not None:
            raise self._error
        if self._total is not None:
            return self._total(query)
        return len(self.rows)

    async def fetch(self, query: CompiledQuery, fields: Sequence[str]) -> list[Any]:
        self.fetch_calls += 1
        self.queries.append(query)
        self.fields.append(list(fields))
        return self.rows[query.offset : query.offset + query.limit]


@pytest.fixture
def config() -> PaginatorConfig:
    return PaginatorConfig()


@pytest.fixture
def resolved(config: PaginatorConfig) -> PaginatorConfig:
    return config.resolve()


@pytest.fixture
def rows() -> list[dict[str, Any]]:
    return [{"id": i, "name": f"user-{i}"} for i in range(1, 26)]


@pytest.fixture
def executor(rows: list[dict[str, Any]]) -> FakeExecutor:
    return FakeExecutor(rows)


@pytest.fixture
def failing_executor() -> FakeExecutor:
    return FakeExecutor(error=QueryExecutionError("relation users does not exist"))


@pytest.fixture
def cache_adapter() -> MemoryCacheAdapter:
    return MemoryCacheAdapter()


@pytest.fixture
def make_executor() -> type[FakeExecutor]:
    return FakeExecutor
