# File: kronos/api/lookup.py
"""kronos.api.lookup: одноразовые запросы по конкретному региону."""

from __future__ import annotations

from typing import Dict

from kronos.api.parser import parse_embassies, parse_last_update
from kronos.api.transport import RateLimitedTransport

__all__ = ["normalize_region", "EmbassyLookup", "LastUpdateLookup"]


def normalize_region(name: str) -> str:
    """API form of a region name: lower case, spaces to underscores."""
    return name.strip().lower().replace(" ", "_")


class EmbassyLookup:
    def __init__(self, transport: RateLimitedTransport) -> None:
        self.transport = transport

    async def embassies_of(self, region: str) -> Dict[str, str]:
        """Partner region -> embassy type (``"open"`` unless the API says otherwise)."""
        body = await self.transport.send(f"region={normalize_region(region)}&q=embassies")
        return parse_embassies(body)


class LastUpdateLookup:
    def __init__(self, transport: RateLimitedTransport) -> None:
        self.transport = transport

    async def last_update_for(self, region: str) -> int:
        """
        Last time the region updated according to the API. Unlike the region
        dump field of the same name this may be a major or a minor update.
        """
        body = await self.transport.send(f"region={normalize_region(region)}&q=lastupdate")
        return parse_last_update(body)
