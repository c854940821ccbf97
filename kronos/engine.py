# File: kronos/engine.py
"""kronos.engine: один транспорт на процесс и все компоненты поверх него."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from kronos.api.boundary import BoundaryScanner
from kronos.api.cache import NationCountCache, TagCache
from kronos.api.lookup import EmbassyLookup, LastUpdateLookup
from kronos.api.models import Happening
from kronos.api.transport import RateLimitedTransport
from kronos.config import KronosConfig, load_config
from kronos.logger import logger

__all__ = ["Engine"]


class Engine:
    """Фасад для CLI и тестов: собирает транспорт, кэши, сканер и справочные запросы.

    Использование::

        async with Engine(config) as engine:
            end = await engine.end_of_minor()
    """

    @staticmethod
    def load_config(path: Optional[str], **overrides) -> KronosConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path, **overrides)

    def __init__(self, config: KronosConfig, transport: Optional[RateLimitedTransport] = None) -> None:
        self.config = config
        self.transport = transport or RateLimitedTransport.from_config(config)
        self.tags = TagCache(self.transport)
        self.nations = NationCountCache(self.transport)
        self.scanner = BoundaryScanner.from_config(self.transport, config)
        self.embassies = EmbassyLookup(self.transport)
        self.last_updates = LastUpdateLookup(self.transport)

    async def __aenter__(self) -> Engine:
        await self.transport.__aenter__()
        logger.debug("Engine ready: %s as %r", self.config.api_url, self.config.user_agent)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        logger.debug("Engine closing, %d bytes downloaded", self.bytes_downloaded)
        await self.transport.__aexit__(exc_type, exc, tb)

    @property
    def bytes_downloaded(self) -> int:
        return self.transport.bytes_downloaded

    async def regions_with_tag(self, tag: str) -> List[str]:
        return await self.tags.value_for(tag)

    async def tagged(self, tags: Optional[Iterable[str]] = None) -> Dict[str, List[str]]:
        """Регионы для каждого тега, по умолчанию из конфига."""
        return await self.tags.prefetch(self.config.tags if tags is None else tags)

    async def num_nations(self) -> int:
        return await self.nations.value()

    async def end_of_minor(self, presumed_end: Optional[int] = None) -> int:
        return await self.scanner.end_of_minor(presumed_end)

    async def delegate_changes_from(self, start: int) -> List[Happening]:
        return await self.scanner.delegate_changes_from(start)

    async def last_update_for(self, region: str) -> int:
        return await self.last_updates.last_update_for(region)

    async def embassies_of(self, region: str) -> Dict[str, str]:
        return await self.embassies.embassies_of(region)
