"""Read-through behaviour, staleness and invalidation of the query cache."""

from __future__ import annotations

import asyncio

import pytest

from semsar.core.query_cache import QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_get_set_remove(cache: QueryCache) -> None:
    assert cache.get(("k",)) is None
    cache.set(("k",), [1])
    assert cache.get(("k",)) == [1]
    assert cache.has(("k",))
    cache.remove(("k",))
    assert not cache.has(("k",))


def test_invalidate_marks_stale_without_dropping_value(clock: FakeClock) -> None:
    cache = QueryCache(default_stale_seconds=30, clock=clock)
    cache.set(("k",), "v")
    assert not cache.is_stale(("k",))

    assert cache.invalidate(("k",)) is True
    assert cache.is_stale(("k",))
    assert cache.get(("k",)) == "v"
    assert cache.invalidate(("missing",)) is False


def test_invalidate_prefix_only_touches_matching_keys(cache: QueryCache) -> None:
    cache.set(("favorites", "ids", "u1"), [])
    cache.set(("favorites", "mine", "u1"), [])
    cache.set(("properties", "list"), [])

    assert cache.invalidate_prefix(("favorites",)) == 2
    assert cache.get_entry(("favorites", "ids", "u1")).is_invalidated
    assert not cache.get_entry(("properties", "list")).is_invalidated


@pytest.mark.asyncio
async def test_fetch_uses_cached_value_until_stale(clock: FakeClock) -> None:
    cache = QueryCache(clock=clock)
    calls = 0

    async def fetcher() -> int:
        nonlocal calls
        calls += 1
        return calls

    assert await cache.fetch(("k",), fetcher, stale_seconds=20) == 1
    clock.now += 10
    assert await cache.fetch(("k",), fetcher, stale_seconds=20) == 1
    clock.now += 15
    assert await cache.fetch(("k",), fetcher, stale_seconds=20) == 2


@pytest.mark.asyncio
async def test_fetch_after_invalidate_refetches(clock: FakeClock) -> None:
    cache = QueryCache(clock=clock)
    cache.set(("k",), "old")
    cache.invalidate(("k",))

    async def fetcher() -> str:
        return "new"

    assert await cache.fetch(("k",), fetcher, stale_seconds=60) == "new"
    assert not cache.is_stale(("k",), stale_seconds=60)


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_request(cache: QueryCache) -> None:
    calls = 0
    release = asyncio.Event()

    async def fetcher() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return "value"

    readers = [asyncio.create_task(cache.fetch(("k",), fetcher)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()

    assert await asyncio.gather(*readers) == ["value", "value", "value"]
    assert calls == 1


@pytest.mark.asyncio
async def test_fetch_retries_then_propagates(cache: QueryCache) -> None:
    attempts = 0

    async def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts < 2:
            raise RuntimeError("transient")
        return "ok"

    assert await cache.fetch(("k",), flaky, retry=1) == "ok"

    async def broken() -> str:
        raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        await cache.fetch(("other",), broken, retry=2)
    assert not cache.has(("other",))


def test_cancel_in_flight_without_fetch_is_noop(cache: QueryCache) -> None:
    assert cache.cancel_in_flight(("k",)) is False


@pytest.mark.asyncio
async def test_invalidate_detaches_a_fetch_that_started_before_it(clock: FakeClock) -> None:
    cache = QueryCache(clock=clock)
    calls = 0
    release = asyncio.Event()

    async def fetcher() -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            await release.wait()
            return "before-write"
        return "after-write"

    reader = asyncio.create_task(cache.fetch(("k",), fetcher, stale_seconds=15))
    await asyncio.sleep(0)

    assert cache.invalidate(("k",)) is True
    release.set()

    # The early reader still gets its answer, but it is not cached as fresh.
    assert await reader == "before-write"
    assert not cache.has(("k",))
    assert await cache.fetch(("k",), fetcher, stale_seconds=15) == "after-write"
    assert calls == 2


@pytest.mark.asyncio
async def test_invalidate_prefix_detaches_in_flight_fetches(cache: QueryCache) -> None:
    release = asyncio.Event()

    async def slow() -> str:
        await release.wait()
        return "old"

    reader = asyncio.create_task(cache.fetch(("favorites", "mine", "u1"), slow))
    await asyncio.sleep(0)

    assert cache.invalidate_prefix(("favorites",)) == 1
    release.set()

    assert await reader == "old"
    assert not cache.has(("favorites", "mine", "u1"))
