"""Tests for `ResourceCache` memoization and invalidation."""

from __future__ import annotations

import asyncio

import pytest

from chef_sdk.cache import ResourceCache


class CountingLoader:
    """Loader that records how often it runs and can be held open."""

    def __init__(self, *batches: list[str]) -> None:
        self.batches = list(batches)
        self.calls = 0
        self.release: asyncio.Event | None = None
        self.started: asyncio.Event | None = None

    async def __call__(self) -> list[str]:
        index = min(self.calls, len(self.batches) - 1)
        self.calls += 1
        if self.started is not None:
            self.started.set()
        if self.release is not None:
            await self.release.wait()
        await asyncio.sleep(0)
        return self.batches[index]


def test_reads_are_idempotent() -> None:
    """Given a populated cache, when it is read repeatedly, then the loader
    runs once and every read returns an equal snapshot."""

    async def scenario() -> None:
        loader = CountingLoader(["a", "b"])
        cache: ResourceCache[str] = ResourceCache(loader, name="letters")

        first = await cache.get()
        second = await cache.get()

        assert first == ("a", "b")
        assert second == first
        assert loader.calls == 1
        assert cache.loaded

    asyncio.run(scenario())


def test_snapshot_is_immutable() -> None:
    async def scenario() -> None:
        cache: ResourceCache[str] = ResourceCache(CountingLoader(["a"]), name="letters")
        items = await cache.get()

        assert isinstance(items, tuple)

    asyncio.run(scenario())


def test_invalidate_forces_exactly_one_refetch() -> None:
    async def scenario() -> None:
        loader = CountingLoader(["old"], ["new"])
        cache: ResourceCache[str] = ResourceCache(loader, name="letters")

        assert await cache.get() == ("old",)
        cache.invalidate()
        assert not cache.loaded
        assert await cache.get() == ("new",)
        assert await cache.get() == ("new",)
        assert loader.calls == 2

    asyncio.run(scenario())


def test_invalidate_before_first_read_is_harmless() -> None:
    async def scenario() -> None:
        loader = CountingLoader(["a"])
        cache: ResourceCache[str] = ResourceCache(loader, name="letters")

        cache.invalidate()
        assert await cache.get() == ("a",)
        assert loader.calls == 1

    asyncio.run(scenario())


def test_concurrent_first_reads_share_one_load() -> None:
    """Given an empty cache, when many readers ask at once, then one load
    serves them all."""

    async def scenario() -> None:
        loader = CountingLoader(["a", "b", "c"])
        loader.release = asyncio.Event()
        cache: ResourceCache[str] = ResourceCache(loader, name="letters")

        readers = [asyncio.create_task(cache.get()) for _ in range(5)]
        await asyncio.sleep(0)
        loader.release.set()
        results = await asyncio.gather(*readers)

        assert loader.calls == 1
        assert all(result == ("a", "b", "c") for result in results)

    asyncio.run(scenario())


def test_invalidate_during_load_discards_result() -> None:
    """Given a load in flight, when the cache is invalidated, then the stale
    result reaches its caller but is not stored."""

    async def scenario() -> None:
        loader = CountingLoader(["stale"], ["fresh"])
        loader.release = asyncio.Event()
        loader.started = asyncio.Event()
        cache: ResourceCache[str] = ResourceCache(loader, name="letters")

        pending = asyncio.create_task(cache.get())
        await loader.started.wait()
        cache.invalidate()
        loader.release.set()

        assert await pending == ("stale",)
        assert not cache.loaded
        assert await cache.get() == ("fresh",)
        assert loader.calls == 2

    asyncio.run(scenario())


def test_loader_failure_leaves_cache_empty() -> None:
    async def scenario() -> None:
        calls = 0

        async def flaky() -> list[str]:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("server unavailable")
            return ["ok"]

        cache: ResourceCache[str] = ResourceCache(flaky, name="flaky")

        with pytest.raises(RuntimeError):
            await cache.get()

        assert not cache.loaded
        assert await cache.get() == ("ok",)

    asyncio.run(scenario())
