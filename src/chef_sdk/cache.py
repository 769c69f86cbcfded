"""Lazy, invalidatable memoization of an entity's child collections."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")


class ResourceCache(Generic[T]):
    """Fetch a collection once and serve it from memory until invalidated.

    Reads return an immutable tuple snapshot. Concurrent first reads share a
    single load: the lock only guards the check-and-populate step for this
    one collection, so other collections and other entities are never
    blocked by it.

    ``invalidate()`` does not cancel a load that is already running. That
    load still returns its result to the callers waiting on it, but the
    result is not stored, so the next read fetches again.
    """

    def __init__(self, loader: Callable[[], Awaitable[Iterable[T]]], *, name: str) -> None:
        self._loader = loader
        self._name = name
        self._items: tuple[T, ...] | None = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def loaded(self) -> bool:
        return self._items is not None

    async def get(self) -> tuple[T, ...]:
        items = self._items
        if items is not None:
            logger.debug(f"Cache hit for {self._name} ({len(items)} items)")
            return items

        async with self._lock:
            items = self._items
            if items is not None:
                return items

            generation = self._generation
            logger.debug(f"Loading {self._name}")
            items = tuple(await self._loader())
            if generation == self._generation:
                self._items = items
            else:
                logger.debug(f"{self._name} was invalidated during load; result not cached")
            return items

    def invalidate(self) -> None:
        self._generation += 1
        if self._items is not None:
            logger.debug(f"Invalidated {self._name}")
        self._items = None
