"""
Expiring Cache

In-memory caches for receiver listings with time-based expiry and stale
fallback, plus per-key coalescing of concurrent loads.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar


logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    data: V
    timestamp: float


class SingleFlight(Generic[K, V]):
    """
    Coalesces concurrent loads of the same key into one in-flight task.

    Callers arriving while a load for their key is pending await the same
    task and receive its result (or its exception).
    """

    def __init__(self):
        self._pending: dict[K, asyncio.Task[V]] = {}

    async def run(self, key: K, func: Callable[[], Awaitable[V]]) -> V:
        """
        Run func for key unless a load for key is already in progress.

        Args:
            key: Coalescing key
            func: Zero-argument coroutine factory performing the load

        Returns:
            Result of the (possibly shared) load
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight load for {key!r}")

        # Shielded so one cancelled caller does not cancel the load for the others
        return await asyncio.shield(task)

    def _forget(self, key: K, task: asyncio.Task[V]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    def is_pending(self, key: K) -> bool:
        return key in self._pending


class ExpiringCache(Generic[K, V]):
    """
    Key/value cache whose entries go stale after ttl_seconds.

    A stale entry is refreshed on the next read; if the refresh fails the
    stale value is served and kept. Only a miss whose first load fails
    propagates the error.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._flight: SingleFlight[K, V] = SingleFlight()

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        """
        Return the cached value for key, loading it when missing or stale.

        Args:
            key: Cache key
            loader: Zero-argument coroutine factory fetching fresh data

        Returns:
            Fresh, refreshed or (on refresh failure) stale data

        Raises:
            Any exception raised by loader when no previous value exists
        """
        entry = self._entries.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry.data

        return await self._flight.run(key, lambda: self._refresh(key, loader))

    async def _refresh(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        started_at = self._clock()
        try:
            data = await loader()
        except Exception as exc:
            previous = self._entries.get(key)
            if previous is None:
                raise
            logger.warning(
                "%s: refresh of %r failed, serving stale data: %s",
                self.name,
                key,
                exc,
            )
            return previous.data

        self._entries[key] = CacheEntry(data=data, timestamp=started_at)
        return data

    def is_fresh(self, entry: CacheEntry[V]) -> bool:
        return (self._clock() - entry.timestamp) < self.ttl_seconds

    def peek(self, key: K) -> CacheEntry[V] | None:
        """Return the raw entry (fresh or stale) without loading."""
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
