"""
Result cache gateway - page envelopes and row counts behind ICacheAdapter.

Cache failures never fail a request: every adapter error is logged and
treated as a miss (reads) or dropped (writes).
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .pagination import Page

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .compiler import CompiledQuery
    from .ports import ICacheAdapter
    from .request import RequestDescriptor

logger = logging.getLogger("query_paginator.cache")

COUNT_KEY_PREFIX = "count:"


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(encoded.encode("utf-8"), usedforsecurity=False).hexdigest()


def create_cache_key(
    prefix: str,
    descriptor: RequestDescriptor,
    fields: Sequence[str] = (),
) -> str:
    """
    Page-envelope key: *prefix* followed by a digest of the request.

    Returns ``""`` (caching disabled) when no prefix was given.
    """
    if not prefix:
        return ""
    payload = descriptor.to_dict()
    payload["selected"] = list(fields)
    return prefix + _digest(payload)


def create_count_cache_key(table: str, query: CompiledQuery) -> str:
    """Row-count key scoped to the table *and* the predicate with its params."""
    return f"{COUNT_KEY_PREFIX}{table}:{_digest([query.where_string, query.params])}"


class CacheGateway:
    """Typed page / count access over an optional :class:`ICacheAdapter`."""

    def __init__(self, adapter: ICacheAdapter | None, ttl: int | None = None) -> None:
        self._adapter = adapter
        self._ttl = ttl

    @property
    def enabled(self) -> bool:
        return self._adapter is not None

    async def get_page(self, key: str) -> Page | None:
        raw = await self._read(key)
        if raw is None:
            logger.debug("Cache miss for key %s", key)
            return None
        try:
            page = Page.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding corrupt cache entry %s: %s", key, e)
            return None
        logger.debug("Cache hit for key %s", key)
        return page

    async def store_page(self, key: str, page: Page) -> None:
        await self._write(key, page.model_dump_json())

    async def get_count(self, key: str) -> int | None:
        raw = await self._read(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Discarding corrupt row count %s: %r", key, raw)
            return None

    async def store_count(self, key: str, total: int) -> None:
        await self._write(key, str(total))

    async def clear_prefix(self, prefix: str) -> None:
        if self._adapter is None or not prefix:
            return
        try:
            await self._adapter.clear_prefix(prefix)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache clear failed for prefix %s: %s", prefix, e)

    async def clear_all(self) -> None:
        if self._adapter is None:
            return
        try:
            await self._adapter.clear_all()
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache clear_all failed: %s", e)

    # ------------------------------------------------------------------ #
    # Internal                                                            #
    # ------------------------------------------------------------------ #

    async def _read(self, key: str) -> str | None:
        if self._adapter is None or not key:
            return None
        try:
            if not await self._adapter.is_valid(key):
                return None
            value, found = await self._adapter.get(key)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache get failed for key %s: %s", key, e)
            return None
        if not found or not value:
            return None
        return value

    async def _write(self, key: str, value: str) -> None:
        if self._adapter is None or not key:
            return
        try:
            await self._adapter.set(key, value, ttl=self._ttl)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache set failed for key %s: %s", key, e)


class MemoryCacheAdapter:
    """
    In-process :class:`ICacheAdapter` for tests and single-process use.

    Entries expire lazily on access; *clock* supplies the current time in
    seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> tuple[str | None, bool]:
        entry = self._live(key)
        if entry is None:
            return None, False
        return entry, True

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._store[key] = (value, expires_at)

    async def is_valid(self, key: str) -> bool:
        return self._live(key) is not None

    async def clear_prefix(self, prefix: str) -> None:
        for key in [k for k in self._store if k.startswith(prefix)]:
            del self._store[key]

    async def clear_all(self) -> None:
        self._store.clear()

    def keys(self) -> list[str]:
        """Currently stored keys, expired ones included until next access."""
        return list(self._store)

    def _live(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._store[key]
            return None
        return value
