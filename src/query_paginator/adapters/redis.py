"""Redis implementation of ICacheAdapter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from ..exceptions import CacheAdapterError

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger("query_paginator.redis_cache")


class RedisCacheAdapter:
    """
    Redis-backed cache adapter.

    Every key is stored under ``namespace``; :meth:`clear_all` only removes
    keys inside that namespace unless the namespace is empty, in which case
    the whole database is flushed.  Failures raise
    :class:`~query_paginator.exceptions.CacheAdapterError`.
    """

    def __init__(self, redis_client: Redis[bytes], namespace: str = "") -> None:
        self._redis = redis_client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> tuple[str | None, bool]:
        try:
            val = await self._redis.get(self._key(key))
        except RedisError as e:
            raise CacheAdapterError("get", key, str(e)) from e
        if val is None:
            return None, False
        if isinstance(val, bytes):
            val = val.decode("utf-8")
        return val, True

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            if ttl:
                await self._redis.setex(self._key(key), ttl, value)
            else:
                await self._redis.set(self._key(key), value)
        except RedisError as e:
            raise CacheAdapterError("set", key, str(e)) from e

    async def is_valid(self, key: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(key)))
        except RedisError as e:
            raise CacheAdapterError("exists", key, str(e)) from e

    async def clear_prefix(self, prefix: str) -> None:
        """Caution: This is expensive (SCAN)."""
        try:
            deleted = await self._scan_delete(self._key(prefix))
        except RedisError as e:
            raise CacheAdapterError("clear_prefix", prefix, str(e)) from e
        logger.debug("Cleared %d keys under prefix %s", deleted, prefix)

    async def clear_all(self) -> None:
        try:
            if self._namespace:
                await self._scan_delete(self._namespace)
            else:
                await self._redis.flushdb()
        except RedisError as e:
            raise CacheAdapterError("clear_all", None, str(e)) from e

    async def _scan_delete(self, prefix: str) -> int:
        deleted = 0
        cursor: int = 0
        while True:
            cursor, keys = await self._redis.scan(cursor, match=f"{prefix}*")
            if keys:
                deleted += await self._redis.delete(*keys)
            if cursor == 0:
                break
        return deleted
