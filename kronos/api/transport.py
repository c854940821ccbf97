# kronos/api/transport.py
"""
Transport module: the only way out to the NationStates API.

Every request joins one FIFO queue and is dispatched only when it is at the
head of the queue and ``interval`` seconds have passed since the previous
response was read. At most one request is in flight at any time.
"""
from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque, Dict, Optional

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout

from kronos.api.models import PendingRequest
from kronos.config import API_URL, KronosConfig
from kronos.errors import TransportError
from kronos.logger import get_logger

__all__ = ("RateLimitedTransport",)


class RateLimitedTransport:
    """Single-flight, strictly ordered, rate-limited GET client."""

    def __init__(
        self,
        user_agent: str,
        *,
        base_url: str = API_URL,
        interval: float = 1.0,
        timeout: float = 30.0,
        session: Optional[ClientSession] = None,
    ) -> None:
        if not user_agent or not user_agent.strip():
            raise ValueError("user_agent must not be empty")
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None
        self._queue: Deque[PendingRequest] = deque()
        self._last_request: Optional[float] = None
        self._bytes_downloaded = 0
        self.logger = get_logger("transport")

    @classmethod
    def from_config(cls, config: KronosConfig, session: Optional[ClientSession] = None) -> RateLimitedTransport:
        return cls(
            config.user_agent,
            base_url=config.api_url,
            interval=config.request_interval,
            timeout=config.timeout,
            session=session,
        )

    async def __aenter__(self) -> RateLimitedTransport:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers=self._headers,
                raise_for_status=False,
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    @property
    def bytes_downloaded(self) -> int:
        """Header bytes plus declared body lengths of every response so far."""
        return self._bytes_downloaded

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def last_request(self) -> Optional[float]:
        """``time.monotonic()`` of the last completed dispatch, if any."""
        return self._last_request

    @property
    def _headers(self) -> Dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept-Encoding": "gzip, deflate"}

    def url_for(self, query: str) -> str:
        return f"{self.base_url}?{query}"

    async def send(self, query: str) -> str:
        """
        Queue ``query``, wait for its turn and return the response body.

        Raises TransportError on connection failure, timeout, non-2xx status
        or an empty body. Nothing is retried here.
        """
        token = PendingRequest(query)
        self._queue.append(token)
        if self._queue[0] is token:
            token.ready.set()
        try:
            await self._wait_turn(token)
            return await self._dispatch(self.url_for(query))
        finally:
            self._release(token)

    async def _wait_turn(self, token: PendingRequest) -> None:
        await token.ready.wait()
        while self._last_request is not None:
            remaining = self.interval - (time.monotonic() - self._last_request)
            if remaining <= 0:
                break
            await asyncio.sleep(remaining)

    def _release(self, token: PendingRequest) -> None:
        was_head = bool(self._queue) and self._queue[0] is token
        try:
            self._queue.remove(token)
        except ValueError:
            return
        if was_head and self._queue:
            self._queue[0].ready.set()

    async def _dispatch(self, url: str) -> str:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, headers=self._headers, raise_for_status=False) as resp:
                self._count_bytes(resp)
                self.logger.debug("GET %s -> %s (queued: %d)", url, resp.status, len(self._queue) - 1)
                if not 200 <= resp.status < 300:
                    raise TransportError(f"HTTP {resp.status} for {url}", url=url, status=resp.status)
                body = await resp.text(errors="replace")
        except (ClientError, asyncio.TimeoutError) as exc:
            self.logger.warning("Request failed %s: %s", url, exc)
            raise TransportError(f"Request failed for {url}: {exc!r}", url=url) from exc
        finally:
            self._last_request = time.monotonic()
        if not body.strip():
            raise TransportError(f"Empty response body for {url}", url=url, status=resp.status)
        return body

    def _count_bytes(self, resp: ClientResponse) -> None:
        # name + ": " + value + CRLF per header line
        self._bytes_downloaded += sum(len(k) + len(v) + 4 for k, v in resp.raw_headers)
        if resp.content_length and resp.content_length > 0:
            self._bytes_downloaded += resp.content_length
