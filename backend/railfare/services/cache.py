"""
Process-wide time-boxed cache.

Provides in-memory caching for upstream responses with:
- Absolute per-entry expiry, checked lazily on access
- A hard bound on the number of entries
- Single-flight fills so concurrent identical misses share one upstream call

There is no proactive sweep. Expired entries stay in memory until they are
read, overwritten, evicted to make room, or dropped by an explicit
``purge_expired()`` call.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Final

from railfare.core.metrics import record_cache_event

logger = logging.getLogger(__name__)


class _Miss:
    """Sentinel type returned by ``TTLCache.get`` when nothing usable is stored."""

    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Final = _Miss()


class TTLCache:
    """
    Bounded key/value store with absolute expiry.

    A stored ``None`` is a legitimate value and is distinct from ``MISS``.
    When the cache is full, expired entries are purged first; if that frees
    nothing, the entry closest to expiry is evicted.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
        name: str = "upstream",
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._store: dict[str, tuple[Any, float]] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._name = name
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISS

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value until ``now + ttl_seconds``, replacing any previous entry."""
        if ttl_seconds <= 0:
            raise ValueError(f"TTL for '{key}' must be positive: {ttl_seconds}")

        if key not in self._store and len(self._store) >= self._max_entries:
            self._make_room()

        self._store[key] = (value, self._clock() + ttl_seconds)
        record_cache_event(self._name, "set")

    def get(self, key: str) -> Any:
        """Return the stored value, or ``MISS`` when absent or expired."""
        entry = self._store.get(key)
        if entry is None:
            record_cache_event(self._name, "miss")
            return MISS

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            record_cache_event(self._name, "expired")
            return MISS

        record_cache_event(self._name, "hit")
        return value

    def delete(self, key: str) -> None:
        """Delete a value from the store."""
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def purge_expired(self) -> int:
        """Remove all expired entries and return how many were dropped."""
        now = self._clock()
        expired_keys = [
            key for key, (_, expires_at) in self._store.items() if expires_at <= now
        ]
        for key in expired_keys:
            del self._store[key]
        return len(expired_keys)

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
    ) -> Any:
        """Read-through lookup with single-flight fills.

        Only successful fetches are stored. When a fetch fails, every caller
        waiting on the same key receives the same exception. When the caller
        that started a fill is cancelled, the waiters start a new fill instead
        of inheriting the cancellation.
        """
        while True:
            cached = self.get(key)
            if cached is not MISS:
                return cached

            pending = self._inflight.get(key)
            if pending is None:
                return await self._fill(key, fetch, ttl_seconds)

            record_cache_event(self._name, "coalesced")
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if not pending.cancelled() or (current and current.cancelling()):
                    raise
                logger.debug("Fill for %s was abandoned, retrying", key)

    async def _fill(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
    ) -> Any:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await fetch()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so an unobserved failure does not warn at GC time.
            future.exception()
            raise
        else:
            self.put(key, value, ttl_seconds)
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    def _make_room(self) -> None:
        if self.purge_expired():
            return
        victim = min(self._store, key=lambda item: self._store[item][1])
        del self._store[victim]
        record_cache_event(self._name, "evicted")
        logger.debug("Cache full, evicted %s", victim)


__all__ = ["MISS", "TTLCache"]
