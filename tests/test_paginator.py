"""Tests for Paginator orchestration."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import pytest

from query_paginator import (
    HttpRequest,
    MemoryCacheAdapter,
    Paginator,
    PaginatorConfig,
)
from query_paginator.exceptions import QueryExecutionError

if TYPE_CHECKING:
    from conftest import FakeExecutor


async def test_paginates_one_based(executor: FakeExecutor) -> None:
    page = await Paginator().paginate(
        executor, HttpRequest.from_query_string("page=3&size=10")
    )
    assert [item["id"] for item in page.items] == [21, 22, 23, 24, 25]
    assert (page.page, page.size, page.total) == (3, 10, 25)
    assert (page.total_pages, page.max_page) == (3, 3)
    assert page.last is True
    assert page.first is False
    assert page.visible == 5


async def test_fluent_api_matches_paginate(executor: FakeExecutor) -> None:
    paginator = Paginator(PaginatorConfig(default_size=5))
    fluent = await paginator.query(executor).request({"page": 2}).response()
    direct = await paginator.paginate(executor, {"page": 2})
    assert fluent == direct
    assert [item["id"] for item in fluent.items] == [6, 7, 8, 9, 10]


async def test_request_can_be_omitted(executor: FakeExecutor) -> None:
    page = await Paginator().query(executor).response()
    assert (page.page, page.size, page.visible) == (1, 10, 10)
    assert page.first is True


async def test_empty_result(make_executor: type[FakeExecutor]) -> None:
    page = await Paginator().paginate(make_executor([]), {})
    assert (page.total, page.total_pages, page.max_page) == (0, 0, 0)
    assert page.items == []


async def test_executor_dialect_drives_compilation(
    make_executor: type[FakeExecutor],
) -> None:
    executor = make_executor([], dialect="sqlite")
    paginator = Paginator()
    await paginator.paginate(
        executor, {"filters": [["name", "contains", "50%"]], "sort": "-id"}
    )
    query = executor.queries[0]
    assert query.where_string == "( LOWER(\"name\") LIKE ? ESCAPE '\\' )"
    assert query.params == ("%50\\%%",)
    assert query.sorts[0].column == '"id"'
    # the shared configuration is never rewritten
    assert paginator.config.dialect is None
    assert paginator.config.field_wrapper == ""


@pytest.mark.parametrize("dialect", [None, "mssql"])
async def test_column_injection_is_neutralised_without_quoting(
    make_executor: type[FakeExecutor], dialect: str | None
) -> None:
    executor = make_executor([], dialect=dialect)
    await Paginator().paginate(
        executor, {"filters": [["id = 1 OR 1=1 OR name", "x"]], "sort": "-id;--"}
    )
    query = executor.queries[0]
    assert "OR 1=1" not in query.where_string
    assert query.where_string == "( id1OR11ORname = ? )"
    assert query.sorts[0].column == "id"


# ---------------------------------------------------------------------------
# Field selection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("enabled", "requested", "allowed", "expected"),
    [
        (True, "id,user.name,secret", ["id", "user.name"], ["id", "User__name"]),
        (False, "id", ["id", "user.name"], ["id", "User__name"]),
        (True, "id,user.name,id", None, ["id", "User__name"]),
        (False, "id,name", None, []),
        (True, "", ["name"], ["name"]),
    ],
)
async def test_field_selection(
    executor: FakeExecutor,
    enabled: bool,
    requested: str,
    allowed: list[str] | None,
    expected: list[str],
) -> None:
    paginator = Paginator(PaginatorConfig(field_selector_enabled=enabled))
    query = paginator.query(executor).request({"fields": requested})
    if allowed is not None:
        query = query.fields(allowed)
    await query.response()
    assert executor.fields == [expected]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


async def test_execution_error_surfaced(failing_executor: FakeExecutor) -> None:
    paginator = Paginator(PaginatorConfig(error_enabled=True))
    page = await paginator.paginate(failing_executor, {"page": 2})
    assert page.error is True
    assert page.error_message == "relation users does not exist"
    assert page.items == []
    assert page.page == 2


async def test_execution_error_logged_when_not_surfaced(
    failing_executor: FakeExecutor, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR, logger="query_paginator.paginator"):
        page = await Paginator().paginate(failing_executor, {})
    assert page.error is False
    assert "error" not in page.to_dict()
    messages = [r.getMessage() for r in caplog.records]
    assert any("relation users does not exist" in m for m in messages)


async def test_other_exceptions_propagate(make_executor: type[FakeExecutor]) -> None:
    with pytest.raises(ZeroDivisionError):
        await Paginator().paginate(make_executor(error=ZeroDivisionError()), {})


async def test_error_pages_are_not_cached(
    failing_executor: FakeExecutor, cache_adapter: MemoryCacheAdapter
) -> None:
    paginator = Paginator(
        PaginatorConfig(error_enabled=True, cache_adapter=cache_adapter)
    )
    await paginator.paginate(failing_executor, {}, cache_prefix="users:")
    assert cache_adapter.keys() == []


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_mapping_config_is_validated() -> None:
    assert Paginator({"default_size": 5}).config.default_size == 5


@pytest.mark.parametrize("bad", [{"default_size": "many"}, 42, "config"])
def test_invalid_config_falls_back_to_defaults(
    bad: Any, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR, logger="query_paginator.paginator"):
        paginator = Paginator(bad)
    assert paginator.config == PaginatorConfig()
    assert any("using defaults" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


async def test_page_cache_short_circuits(
    executor: FakeExecutor, cache_adapter: MemoryCacheAdapter
) -> None:
    paginator = Paginator(PaginatorConfig(cache_adapter=cache_adapter, cache_ttl=30))
    first = await paginator.paginate(executor, {"page": 2}, cache_prefix="users:")
    second = await paginator.paginate(executor, {"page": 2}, cache_prefix="users:")
    assert first == second
    assert executor.fetch_calls == 1
    assert executor.count_calls == 1
    assert len(cache_adapter.keys()) == 1


async def test_no_prefix_no_page_cache(
    executor: FakeExecutor, cache_adapter: MemoryCacheAdapter
) -> None:
    paginator = Paginator(PaginatorConfig(cache_adapter=cache_adapter))
    await paginator.paginate(executor, {})
    await paginator.paginate(executor, {})
    assert executor.fetch_calls == 2
    assert cache_adapter.keys() == []


async def test_cache_failure_does_not_fail_request(executor: FakeExecutor) -> None:
    adapter = AsyncMock()
    adapter.is_valid.side_effect = ConnectionError("cache down")
    adapter.set.side_effect = ConnectionError("cache down")
    paginator = Paginator(PaginatorConfig(cache_adapter=adapter))
    page = await paginator.paginate(executor, {}, cache_prefix="users:")
    assert page.total == 25


async def test_count_cache_is_scoped_to_filters(
    make_executor: type[FakeExecutor], cache_adapter: MemoryCacheAdapter
) -> None:
    totals = {"bob": 3, "alice": 7}
    executor = make_executor(
        [],
        total=lambda q: totals[q.params[0]] if q.params else 100,
    )
    paginator = Paginator(
        PaginatorConfig(cache_adapter=cache_adapter, count_cache_enabled=True)
    )

    bob = await paginator.paginate(executor, {"filters": [["name", "bob"]]})
    alice = await paginator.paginate(executor, {"filters": [["name", "alice"]]})
    bob_again = await paginator.paginate(
        executor, {"page": 2, "filters": [["name", "bob"]]}
    )

    assert (bob.total, alice.total, bob_again.total) == (3, 7, 3)
    assert executor.count_calls == 2


async def test_clear_cache_in_background(
    executor: FakeExecutor, cache_adapter: MemoryCacheAdapter
) -> None:
    paginator = Paginator(PaginatorConfig(cache_adapter=cache_adapter))
    await paginator.paginate(executor, {}, cache_prefix="users:")
    await cache_adapter.set("orders:1", "{}")

    paginator.clear_cache("users:")
    await paginator.drain()
    assert cache_adapter.keys() == ["orders:1"]

    paginator.clear_all_cache()
    await paginator.drain()
    assert cache_adapter.keys() == []


async def test_clear_failures_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    adapter = AsyncMock()
    adapter.clear_all.side_effect = ConnectionError("cache down")
    paginator = Paginator(PaginatorConfig(cache_adapter=adapter))
    with caplog.at_level(logging.WARNING, logger="query_paginator.cache"):
        paginator.clear_all_cache()
        await paginator.drain()
    assert any("clear_all failed" in r.getMessage() for r in caplog.records)


def test_clear_cache_without_running_loop() -> None:
    adapter = MemoryCacheAdapter()
    asyncio.run(adapter.set("users:1", "{}"))
    paginator = Paginator(PaginatorConfig(cache_adapter=adapter))
    paginator.clear_cache("users:")
    assert adapter.keys() == []


def test_clear_cache_without_adapter_is_noop() -> None:
    paginator = Paginator()
    paginator.clear_cache("users:")
    paginator.clear_all_cache()
