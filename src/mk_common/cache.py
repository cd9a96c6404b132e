"""Bounded, time-expiring cache for profile lookups and listing snapshots.

Two tiers:
  - in-memory LRU (``OrderedDict``), bounded by ``max_entries``
  - optional persistent tier (Redis), shared across sessions and restarts

Entries are never dropped for being old, only for being evicted: a stale entry
is still returned (``fresh=False``) so ``fetch`` can fall back to it when the
loader fails.
"""

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from src.mk_common.redis_client import get_redis

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    fresh: bool


class PersistentCacheBackend(Protocol):
    async def load(self, key: str) -> tuple[Any, float] | None: ...

    async def store(self, key: str, value: Any, stored_at: float) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisCacheBackend:
    """Persistent tier: JSON payload ``{"v": value, "t": stored_at}`` per key."""

    # Keep payloads around well past their TTL so stale fallbacks survive restarts
    _RETENTION_FACTOR = 12

    def __init__(self, namespace: str, ttl_seconds: int) -> None:
        self._namespace = namespace
        self._expire_seconds = max(ttl_seconds * self._RETENTION_FACTOR, 1)

    def _key(self, key: str) -> str:
        return f"cache:{self._namespace}:{key}"

    async def load(self, key: str) -> tuple[Any, float] | None:
        redis = await get_redis()
        raw = await redis.get(self._key(key))
        if raw is None:
            return None
        payload = json.loads(raw)
        return payload["v"], float(payload["t"])

    async def store(self, key: str, value: Any, stored_at: float) -> None:
        redis = await get_redis()
        raw = json.dumps({"v": value, "t": stored_at}, default=str)
        await redis.set(self._key(key), raw, ex=self._expire_seconds)

    async def delete(self, key: str) -> None:
        redis = await get_redis()
        await redis.delete(self._key(key))


class TimedCache:
    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 500,
        persistent: PersistentCacheBackend | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._persistent = persistent
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _entry(self, value: Any, stored_at: float) -> CacheEntry:
        age = self._clock() - stored_at
        return CacheEntry(value=value, stored_at=stored_at, fresh=age < self._ttl)

    def _remember(self, key: str, value: Any, stored_at: float) -> None:
        self._entries[key] = (value, stored_at)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def get(self, key: str) -> CacheEntry | None:
        hit = self._entries.get(key)
        if hit is not None:
            self._entries.move_to_end(key)
            return self._entry(*hit)
        if self._persistent is None:
            return None
        try:
            loaded = await self._persistent.load(key)
        except Exception:
            logger.warning("Persistent cache read failed for %s", key, exc_info=True)
            return None
        if loaded is None:
            return None
        value, stored_at = loaded
        self._remember(key, value, stored_at)
        return self._entry(value, stored_at)

    async def set(self, key: str, value: Any) -> None:
        stored_at = self._clock()
        self._remember(key, value, stored_at)
        if self._persistent is None:
            return
        try:
            await self._persistent.store(key, value, stored_at)
        except Exception:
            logger.warning("Persistent cache write failed for %s", key, exc_info=True)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)
        if self._persistent is None:
            return
        try:
            await self._persistent.delete(key)
        except Exception:
            logger.warning("Persistent cache delete failed for %s", key, exc_info=True)

    def clear(self) -> None:
        """Drop the in-memory tier only."""
        self._entries.clear()

    async def fetch(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return a fresh cached value, or load and cache it.

        If the loader fails and a stale value exists, the stale value is
        returned instead of the error.
        """
        cached = await self.get(key)
        if cached is not None and cached.fresh:
            return cached.value
        try:
            value = await loader()
        except Exception:
            if cached is None:
                raise
            logger.warning("Loader failed for %s, serving stale cache entry", key, exc_info=True)
            return cached.value
        await self.set(key, value)
        return value
