"""
Paginator - request in, page envelope out.

Per request::

    parse_request -> compile_request -> (cache hit?) -> count + fetch
        -> build_page -> (cache store)

Example::

    paginator = Paginator(PaginatorConfig(default_size=20))
    page = await (
        paginator.query(executor)
        .request(HttpRequest.from_query_string("page=2&sort=-id"))
        .cache("users:")
        .fields(["id", "name"])
        .response()
    )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .cache import CacheGateway, create_cache_key, create_count_cache_key
from .compiler import compile_request
from .config import PaginatorConfig
from .exceptions import ConfigurationError, QueryExecutionError
from .fields import select_fields
from .pagination import build_error_page, build_page
from .ports import QueryResult
from .request import parse_request

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence

    from .compiler import CompiledQuery
    from .pagination import Page
    from .ports import IQueryExecutor

logger = logging.getLogger("query_paginator.paginator")


def _coerce_config(config: Any) -> PaginatorConfig:
    if config is None:
        return PaginatorConfig()
    if isinstance(config, PaginatorConfig):
        return config
    if isinstance(config, Mapping):
        try:
            return PaginatorConfig.model_validate(dict(config))
        except ValidationError as e:
            error = ConfigurationError(f"Invalid paginator configuration: {e}")
    else:
        error = ConfigurationError(
            f"Unsupported configuration object: {type(config).__name__}"
        )
    logger.error("%s; using defaults", error)
    return PaginatorConfig()


class Paginator:
    """
    Entry point shared across requests.

    Holds the immutable configuration and the handles of background cache
    clears; every request works on its own derived copy of the config.
    """

    def __init__(self, config: PaginatorConfig | Mapping[str, Any] | None = None):
        self._config = _coerce_config(config)
        self._background: set[asyncio.Task[None]] = set()

    @property
    def config(self) -> PaginatorConfig:
        return self._config

    def query(self, executor: IQueryExecutor) -> PaginatorQuery:
        """Start a fluent request against *executor*."""
        return PaginatorQuery(self, executor)

    async def paginate(
        self,
        executor: IQueryExecutor,
        request: Any,
        *,
        cache_prefix: str = "",
        fields: Sequence[str] | None = None,
    ) -> Page:
        """
        Run one paginated request.

        Args:
            executor: Data-access collaborator.
            request: An :class:`~query_paginator.request.HttpRequest` or a
                mapping of already-decoded parameters.
            cache_prefix: Enables the page cache when non-empty and a cache
                adapter is configured.
            fields: Server-side list of selectable fields.
        """
        config = self._config.resolve(executor.dialect)
        descriptor = parse_request(request, config)
        query = compile_request(descriptor, config)
        selected = select_fields(
            descriptor.fields,
            fields,
            selector_enabled=config.field_selector_enabled,
        )

        gateway = CacheGateway(config.cache_adapter, config.cache_ttl)
        key = create_cache_key(cache_prefix, descriptor, selected)
        if gateway.enabled and key:
            cached = await gateway.get_page(key)
            if cached is not None:
                return cached

        try:
            result = await self._execute(executor, query, selected, gateway, config)
        except QueryExecutionError as e:
            logger.error("Query on %s failed: %s", executor.name, e)
            return build_error_page(
                str(e),
                query=query,
                descriptor=descriptor,
                surface=config.error_enabled,
            )

        page = build_page(
            result.items, total=result.total, query=query, descriptor=descriptor
        )
        if gateway.enabled and key:
            await gateway.store_page(key, page)
        return page

    # ------------------------------------------------------------------ #
    # Cache maintenance                                                   #
    # ------------------------------------------------------------------ #

    def clear_cache(self, *prefixes: str) -> None:
        """Drop cached pages under each prefix in the background."""
        gateway = self._gateway()
        if not gateway.enabled:
            return
        for prefix in prefixes:
            if prefix:
                self._dispatch(gateway.clear_prefix(prefix))

    def clear_all_cache(self) -> None:
        """Drop every cached entry in the background."""
        gateway = self._gateway()
        if gateway.enabled:
            self._dispatch(gateway.clear_all())

    async def drain(self) -> None:
        """Wait for pending background cache clears."""
        if self._background:
            await asyncio.gather(*self._background)

    # ------------------------------------------------------------------ #
    # Internal                                                            #
    # ------------------------------------------------------------------ #

    def _gateway(self) -> CacheGateway:
        return CacheGateway(self._config.cache_adapter, self._config.cache_ttl)

    def _dispatch(self, job: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(job)
            return
        task = loop.create_task(job)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _execute(
        self,
        executor: IQueryExecutor,
        query: CompiledQuery,
        selected: Sequence[str],
        gateway: CacheGateway,
        config: PaginatorConfig,
    ) -> QueryResult:
        total: int | None = None
        count_key = ""
        if config.count_cache_enabled and gateway.enabled:
            count_key = create_count_cache_key(executor.name, query)
            total = await gateway.get_count(count_key)

        if total is None:
            total = await executor.count(query)
            if count_key:
                await gateway.store_count(count_key, total)

        items = await executor.fetch(query, selected)
        return QueryResult(items=items, total=total)


class PaginatorQuery:
    """Fluent, single-use request context returned by :meth:`Paginator.query`."""

    def __init__(self, paginator: Paginator, executor: IQueryExecutor) -> None:
        self._paginator = paginator
        self._executor = executor
        self._request: Any = None
        self._cache_prefix = ""
        self._fields: list[str] | None = None

    def request(self, request: Any) -> PaginatorQuery:
        self._request = request
        return self

    def cache(self, prefix: str) -> PaginatorQuery:
        self._cache_prefix = prefix
        return self

    def fields(self, fields: Sequence[str]) -> PaginatorQuery:
        self._fields = list(fields)
        return self

    async def response(self) -> Page:
        return await self._paginator.paginate(
            self._executor,
            self._request,
            cache_prefix=self._cache_prefix,
            fields=self._fields,
        )
