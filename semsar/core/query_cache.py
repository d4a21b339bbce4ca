"""In-process query cache shared by every request of one application instance.

Entries are addressed by tuple keys (see ``semsar.core.query_keys``). Reads go
through :meth:`QueryCache.fetch`, which only hits Supabase when the entry is
missing, invalidated or older than the caller's stale window. Writes from the
optimistic membership controller use :meth:`QueryCache.set` directly.

All methods except ``fetch`` are synchronous so a group of writes issued
back-to-back is never interleaved with another coroutine.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from semsar.core.query_keys import QueryKey

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class CacheEntry:
    value: Any
    updated_at: float
    is_invalidated: bool = False


class QueryCache:
    def __init__(
        self,
        default_stale_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_stale_seconds = default_stale_seconds
        self._clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._in_flight: Dict[QueryKey, "asyncio.Task[Any]"] = {}
        # Fetches overtaken by an invalidation: awaiters get the result, the cache does not
        self._detached: Set["asyncio.Task[Any]"] = set()

    def get(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def has(self, key: QueryKey) -> bool:
        return key in self._entries

    def get_entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, updated_at=self._clock())

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def invalidate(self, key: QueryKey) -> bool:
        """Mark ``key`` stale so the next read re-fetches.

        A fetch still running for ``key`` may have read Supabase before the
        change being reconciled. It is detached: current awaiters still get
        its result, but the result is not stored and the next read starts a
        new fetch. Returns False when there was neither an entry nor a fetch.
        """
        found = self._detach_in_flight(key)
        entry = self._entries.get(key)
        if entry is not None:
            entry.is_invalidated = True
            found = True
        return found

    def invalidate_prefix(self, prefix: QueryKey) -> int:
        count = 0
        for key in {*self._entries, *self._in_flight}:
            if key[: len(prefix)] == prefix and self.invalidate(key):
                count += 1
        return count

    def _detach_in_flight(self, key: QueryKey) -> bool:
        task = self._in_flight.pop(key, None)
        if task is None or task.done():
            return False
        self._detached.add(task)
        logger.debug(f"Detached in-flight fetch for {key}")
        return True

    def is_stale(self, key: QueryKey, stale_seconds: Optional[float] = None) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.is_invalidated:
            return True
        window = self.default_stale_seconds if stale_seconds is None else stale_seconds
        return self._clock() - entry.updated_at >= window

    def cancel_in_flight(self, key: QueryKey) -> bool:
        """Drop a running fetch for ``key`` so its late result is never stored."""
        task = self._in_flight.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug(f"Cancelled in-flight fetch for {key}")
        return True

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    def clear(self) -> None:
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()
        for task in self._detached:
            task.cancel()
        self._detached.clear()
        self._entries.clear()

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_seconds: Optional[float] = None,
        retry: int = 0,
    ) -> Any:
        if not self.is_stale(key, stale_seconds):
            logger.debug(f"Query cache hit for {key}")
            return self._entries[key].value

        task = self._in_flight.get(key)
        if task is None:
            logger.debug(f"Query cache miss for {key}")
            task = asyncio.ensure_future(self._run_fetch(key, fetcher, retry))
            self._in_flight[key] = task

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            # Someone wrote over this key while we were fetching; their value wins.
            return self.get(key)

    async def _run_fetch(self, key: QueryKey, fetcher: Fetcher, retry: int) -> Any:
        current = asyncio.current_task()
        try:
            attempts = max(retry, 0) + 1
            for attempt in range(1, attempts + 1):
                try:
                    value = await fetcher()
                except Exception as e:
                    if attempt == attempts:
                        raise
                    logger.debug(f"Fetch for {key} failed (attempt {attempt}/{attempts}): {e}")
                    continue
                if current not in self._detached:
                    self.set(key, value)
                return value
        finally:
            self._detached.discard(current)
            if self._in_flight.get(key) is current:
                del self._in_flight[key]
