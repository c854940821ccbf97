# kronos/api/boundary.py
"""
Update boundary searches over the happenings feed.

The API has no "end of update" endpoint, so both searches infer boundaries
from side effects that updates leave in the public event log:

* :meth:`BoundaryScanner.end_of_minor` walks backwards from a presumed end in
  fixed steps until a batch contains an influence change.
* :meth:`BoundaryScanner.delegate_changes_from` widens a window forward from
  a start point, re-reading the whole window each time and keeping events it
  has not seen yet.
"""
from __future__ import annotations

from typing import List, Optional

from kronos.api.models import Happening
from kronos.api.parser import parse_happenings
from kronos.api.transport import RateLimitedTransport
from kronos.config import KronosConfig
from kronos.errors import BoundaryNotFound
from kronos.logger import get_logger
from kronos.timeutil import last_minor_end

__all__ = ("BoundaryScanner",)

#: the API never returns more than this many happenings per call
BATCH_LIMIT = 200


class BoundaryScanner:
    """Backward and forward boundary searches built on one transport."""

    def __init__(
        self,
        transport: RateLimitedTransport,
        *,
        decrement: int = 900,
        horizon: int = 86400,
        increment: int = 900,
        window_cap: int = 14400,
        minor_length: int = 3600,
    ) -> None:
        self.transport = transport
        self.decrement = decrement
        self.horizon = horizon
        self.increment = increment
        self.window_cap = window_cap
        self.minor_length = minor_length
        self.logger = get_logger("boundary")

    @classmethod
    def from_config(cls, transport: RateLimitedTransport, config: KronosConfig) -> BoundaryScanner:
        return cls(
            transport,
            decrement=config.decrement,
            horizon=config.horizon,
            increment=config.increment,
            window_cap=config.window_cap,
            minor_length=config.minor_length,
        )

    async def end_of_minor(self, presumed_end: Optional[int] = None) -> int:
        """
        Timestamp of the last influence change at or before ``presumed_end``.

        ``presumed_end`` defaults to the presumed end of the last minor update.
        Raises BoundaryNotFound once the probe has moved more than ``horizon``
        seconds back without finding one.
        """
        start = presumed_end if presumed_end is not None else last_minor_end(minor_length=self.minor_length)
        before = start
        while start - before <= self.horizon:
            body = await self.transport.send(
                f"q=happenings;filter=change;beforetime={before};limit={BATCH_LIMIT}"
            )
            # newest first, so the first influence change is the latest one
            for change in parse_happenings(body):
                if change.mentions("influence"):
                    self.logger.info("Last influence change at %d (probed from %d)", change.timestamp, start)
                    return change.timestamp
            self.logger.debug("No influence change before %d, stepping back %d s", before, self.decrement)
            before -= self.decrement
        self.logger.warning("No influence change within %d s before %d", self.horizon, start)
        raise BoundaryNotFound(start, self.horizon)

    async def delegate_changes_from(self, start: int) -> List[Happening]:
        """
        Happenings of nations becoming WA Delegate from ``start`` on.

        The window ``[start, start + i*increment]`` grows while the previous
        pass found something new and stays below ``window_cap``.
        """
        found: List[Happening] = []
        seen = set()
        more = True
        i = 1
        while more and i * self.increment < self.window_cap:
            more = False
            body = await self.transport.send(
                f"q=happenings;filter=member;sincetime={start};"
                f"beforetime={start + i * self.increment};limit={BATCH_LIMIT}"
            )
            for happening in parse_happenings(body):
                if happening in seen or not happening.mentions("wa delegate", "became"):
                    continue
                seen.add(happening)
                found.append(happening)
                more = True
            self.logger.debug("Window %d s: %d delegate changes so far", i * self.increment, len(found))
            i += 1
        return found
