# File: tests/conftest.py
from __future__ import annotations

import asyncio
import re
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote
from xml.sax.saxutils import escape, quoteattr

import pytest
import pytest_asyncio
from aiohttp import web

from kronos.config import KronosConfig

API_PATH = "/cgi-bin/api.cgi"


def parse_query(query: str) -> Dict[str, str]:
    """NationStates mixes ``;`` and ``&`` as separators."""
    params: Dict[str, str] = {}
    for part in re.split(r"[;&]", unquote(query)):
        key, _, value = part.partition("=")
        if key:
            params[key] = value
    return params


@dataclass
class FakeWorld:
    """In-memory NationStates API: answers query strings with XML bodies."""

    events: List[Tuple[int, int, str, str]] = field(default_factory=list)
    tags: Dict[str, List[str]] = field(default_factory=dict)
    numnations: int = 250000
    last_updates: Dict[str, int] = field(default_factory=dict)
    embassies: Dict[str, List[Tuple[str, Optional[str]]]] = field(default_factory=dict)
    #: bodies returned instead of the real answer, consumed one per request
    overrides: List[str] = field(default_factory=list)

    def add_event(self, ts: int, text: str, kind: str = "change") -> None:
        self.events.append((len(self.events) + 1, ts, text, kind))

    def respond(self, query: str) -> str:
        if self.overrides:
            return self.overrides.pop(0)
        params = parse_query(query)
        q = params.get("q")
        if q == "happenings":
            return self._happenings(params)
        if q == "regionsbytag":
            names = self.tags.get(params["tags"], [])
            return f"<WORLD><REGIONS>{escape(','.join(names))}</REGIONS></WORLD>"
        if q == "numnations":
            return f"<WORLD><NUMNATIONS>{self.numnations}</NUMNATIONS></WORLD>"
        region = params.get("region", "")
        if q == "lastupdate":
            return f'<REGION id="{region}"><LASTUPDATE>{self.last_updates[region]}</LASTUPDATE></REGION>'
        if q == "embassies":
            items = "".join(
                f"<EMBASSY type={quoteattr(kind)}>{escape(name)}</EMBASSY>" if kind else f"<EMBASSY>{escape(name)}</EMBASSY>"
                for name, kind in self.embassies.get(region, [])
            )
            return f'<REGION id="{region}">\n<EMBASSIES>\n{items}\n</EMBASSIES>\n</REGION>'
        raise AssertionError(f"unexpected query {query!r}")

    def _happenings(self, params: Dict[str, str]) -> str:
        since = int(params.get("sincetime", 0))
        before = int(params.get("beforetime", 2**62))
        limit = int(params.get("limit", 100))
        kind = params.get("filter")
        selected = sorted(
            (e for e in self.events if since <= e[1] <= before and (kind is None or e[3] == kind)),
            key=lambda e: e[1],
            reverse=True,
        )[:limit]
        body = "".join(
            f'<EVENT id="{eid}"><TIMESTAMP>{ts}</TIMESTAMP><TEXT>{escape(text)}</TEXT></EVENT>'
            for eid, ts, text, _ in selected
        )
        return f"<WORLD>\n<HAPPENINGS>\n{body}\n</HAPPENINGS>\n</WORLD>"


class FakeTransport:
    """Stands in for RateLimitedTransport: same ``send`` contract, no network."""

    def __init__(self, world: FakeWorld) -> None:
        self.world = world
        self.queries: List[str] = []
        self.bytes_downloaded = 0

    async def send(self, query: str) -> str:
        self.queries.append(query)
        await asyncio.sleep(0)
        return self.world.respond(query)

    def count(self, q: str) -> int:
        return sum(1 for query in self.queries if parse_query(query).get("q") == q)


@dataclass
class RecordedRequest:
    query: str
    headers: Dict[str, str]
    received: float


@pytest.fixture()
def world() -> FakeWorld:
    return FakeWorld()


@pytest.fixture()
def fake_transport(world: FakeWorld) -> FakeTransport:
    return FakeTransport(world)


@pytest.fixture()
def basic_config() -> KronosConfig:
    """Return a basic valid KronosConfig with no spacing between requests."""
    return KronosConfig(
        user_agent="TestAgent/1.0",
        request_interval=0.0,
        timeout=2.0,
    )


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield API URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}{API_PATH}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def requests_log() -> List[RecordedRequest]:
    return []


@pytest_asyncio.fixture
async def api_server(world: FakeWorld, requests_log: List[RecordedRequest], unused_tcp_port: int) -> AsyncIterator[str]:
    """aiohttp server answering from *world* and recording every request."""
    app = web.Application()

    async def handle_api(request: web.Request) -> web.Response:
        requests_log.append(RecordedRequest(request.query_string, dict(request.headers), time.monotonic()))
        return web.Response(text=world.respond(request.query_string), content_type="text/xml")

    app.router.add_get(API_PATH, handle_api)

    async for url in _serve_app(app, unused_tcp_port):
        yield url
