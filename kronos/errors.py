# File: kronos/errors.py
"""kronos.errors: Исключения, которые ядро Kronos пробрасывает вызывающему коду."""

from __future__ import annotations

from typing import Optional

__all__ = ["KronosError", "TransportError", "ParseError", "BoundaryNotFound"]


class KronosError(Exception):
    """Base class for every error raised by the API core."""


class TransportError(KronosError):
    """Connection failure, timeout, non-success status or an empty body."""

    def __init__(self, message: str, *, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(KronosError):
    """The response did not contain the expected element or value."""


class BoundaryNotFound(KronosError):
    """The backward probe passed its horizon without an influence change."""

    def __init__(self, start: int, horizon: int) -> None:
        super().__init__(f"No influence change within {horizon} s before {start}")
        self.start = start
        self.horizon = horizon
