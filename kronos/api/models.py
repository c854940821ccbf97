# kronos/api/models.py
"""
Data models for NationStates API responses and the request queue.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Happening:
    """One ``<EVENT>`` of the happenings feed. Equal events have equal content."""

    event_id: int = field(compare=False)
    timestamp: int
    text: str

    def mentions(self, *needles: str) -> bool:
        """True when the lower-cased text contains every needle."""
        low = self.text.lower()
        return all(n in low for n in needles)


@dataclass(eq=False, slots=True)
class PendingRequest:
    """Queue token for one outbound request; identity, not query, makes it unique.

    ``ready`` is set by the transport once the token reaches the queue head.
    """

    query: str
    ready: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
