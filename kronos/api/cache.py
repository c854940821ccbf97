# File: kronos/api/cache.py
"""kronos.api.cache: ленивые кэши, заполняемые при первом обращении.

Значение записывается один раз и не обновляется до конца жизни процесса.
Одновременные первые обращения к одному ключу разделяют один запрос.
Ошибка загрузки ничего не сохраняет: следующее обращение повторит запрос.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar

from kronos.api.parser import parse_num_nations, parse_regions_by_tag
from kronos.api.transport import RateLimitedTransport
from kronos.logger import get_logger

__all__ = ["TagCache", "NationCountCache"]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = get_logger("cache")


class _WriteOnceCache(Generic[K, V]):
    """Per-key write-once store with shared in-flight loads."""

    def __init__(self, loader: Callable[[K], Awaitable[V]]) -> None:
        self._loader = loader
        self._values: Dict[K, V] = {}
        self._pending: Dict[K, asyncio.Task[V]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def peek(self, key: K) -> Optional[V]:
        return self._values.get(key)

    async def get(self, key: K) -> V:
        if key in self._values:
            return self._values[key]
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key))
            self._pending[key] = task
        # shield: one cancelled caller must not cancel the load for the others
        return await asyncio.shield(task)

    async def _load(self, key: K) -> V:
        try:
            value = await self._loader(key)
            self._values[key] = value
            return value
        finally:
            self._pending.pop(key, None)


class TagCache:
    """Region names per tag, fetched once via ``q=regionsbytag``."""

    def __init__(self, transport: RateLimitedTransport) -> None:
        self.transport = transport
        self._cache: _WriteOnceCache[str, List[str]] = _WriteOnceCache(self._fetch)

    async def value_for(self, tag: str) -> List[str]:
        # copy: callers must not be able to mutate the cached entry
        return list(await self._cache.get(tag.strip().lower()))

    async def prefetch(self, tags: Iterable[str]) -> Dict[str, List[str]]:
        """Fill several tags in order and return them by name."""
        return {tag: await self.value_for(tag) for tag in tags}

    def cached(self, tag: str) -> bool:
        return tag.strip().lower() in self._cache

    async def _fetch(self, tag: str) -> List[str]:
        body = await self.transport.send(f"q=regionsbytag;tags={tag}")
        regions = parse_regions_by_tag(body)
        logger.debug("Tag %r: %d regions", tag, len(regions))
        return regions


class NationCountCache:
    """World nation count, fetched once via ``q=numnations``."""

    _KEY = "numnations"

    def __init__(self, transport: RateLimitedTransport) -> None:
        self.transport = transport
        self._cache: _WriteOnceCache[str, int] = _WriteOnceCache(self._fetch)

    async def value(self) -> int:
        return await self._cache.get(self._KEY)

    @property
    def cached(self) -> Optional[int]:
        return self._cache.peek(self._KEY)

    async def _fetch(self, _key: str) -> int:
        return parse_num_nations(await self.transport.send("q=numnations"))
