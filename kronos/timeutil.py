# File: kronos/timeutil.py
"""kronos.timeutil: расписание обновлений NationStates.

Мажор начинается в 00:00, минор в 12:00 по времени America/New_York
(с учётом перехода на летнее время).
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

__all__ = [
    "NS_TZ",
    "last_major_start",
    "last_minor_start",
    "last_minor_end",
    "format_timestamp",
]

NS_TZ = ZoneInfo("America/New_York")

_MAJOR = time(0, 0)
_MINOR = time(12, 0)


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return now


def _last_start(at: time, now: Optional[datetime]) -> int:
    local = _now(now).astimezone(NS_TZ)
    start = datetime.combine(local.date(), at, tzinfo=NS_TZ)
    if start > local:
        start = datetime.combine(local.date() - timedelta(days=1), at, tzinfo=NS_TZ)
    return int(start.timestamp())


def last_major_start(now: Optional[datetime] = None) -> int:
    """Unix timestamp of the most recent major update start at or before ``now``."""
    return _last_start(_MAJOR, now)


def last_minor_start(now: Optional[datetime] = None) -> int:
    """Unix timestamp of the most recent minor update start at or before ``now``."""
    return _last_start(_MINOR, now)


def last_minor_end(now: Optional[datetime] = None, minor_length: int = 3600) -> int:
    """Presumed end of the last minor: its start plus ``minor_length``, never in the future."""
    current = int(_now(now).timestamp())
    return min(last_minor_start(now) + minor_length, current)


def format_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
