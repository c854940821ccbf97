# File: tests/test_boundary.py
import asyncio

import pytest

import kronos.api.boundary as boundary_module
from kronos.api.boundary import BoundaryScanner
from kronos.api.models import Happening
from kronos.errors import BoundaryNotFound, ParseError

T = 1_700_000_000
INFLUENCE = "@@gamma@@'s influence in %%lazarus%% rose from \"Page\" to \"Squire\"."


def populate_changes(world, start, stop, step):
    for ts in range(start, stop + 1, step):
        world.add_event(ts, f"@@nation_{ts}@@ changed its national motto.", "change")


# --------------------------------------------------------------------------- #
#                              end_of_minor                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
@pytest.mark.parametrize("offset", [0, 1, 899, 900, 5000])
async def test_end_of_minor_returns_only_influence_change(world, fake_transport, offset):
    world.add_event(T, INFLUENCE)
    scanner = BoundaryScanner(fake_transport)
    assert await scanner.end_of_minor(T + offset) == T


@pytest.mark.asyncio()
async def test_end_of_minor_steps_back_past_full_batches(world, fake_transport):
    world.add_event(T, INFLUENCE)
    populate_changes(world, T + 5, T + 2000, 5)
    scanner = BoundaryScanner(fake_transport)

    assert await scanner.end_of_minor(T + 2000) == T
    assert fake_transport.queries == [
        f"q=happenings;filter=change;beforetime={T + 2000};limit=200",
        f"q=happenings;filter=change;beforetime={T + 1100};limit=200",
        f"q=happenings;filter=change;beforetime={T + 200};limit=200",
    ]


@pytest.mark.asyncio()
async def test_end_of_minor_first_match_is_newest(world, fake_transport):
    world.add_event(T - 50, INFLUENCE)
    world.add_event(T, "@@delta@@'s influence in %%osiris%% fell.")
    populate_changes(world, T - 40, T - 10, 10)
    scanner = BoundaryScanner(fake_transport)
    assert await scanner.end_of_minor(T + 10) == T
    assert len(fake_transport.queries) == 1


@pytest.mark.asyncio()
async def test_end_of_minor_gives_up_at_horizon(world, fake_transport):
    populate_changes(world, T - 3000, T, 100)
    scanner = BoundaryScanner(fake_transport, decrement=900, horizon=1800)

    with pytest.raises(BoundaryNotFound) as excinfo:
        await scanner.end_of_minor(T)

    assert excinfo.value.start == T
    assert excinfo.value.horizon == 1800
    assert len(fake_transport.queries) == 3


@pytest.mark.asyncio()
async def test_end_of_minor_defaults_to_presumed_minor_end(world, fake_transport, monkeypatch):
    world.add_event(T, INFLUENCE)
    seen = {}

    def fake_last_minor_end(minor_length=3600):
        seen["minor_length"] = minor_length
        return T + 60

    monkeypatch.setattr(boundary_module, "last_minor_end", fake_last_minor_end)
    scanner = BoundaryScanner(fake_transport, minor_length=2700)

    assert await scanner.end_of_minor() == T
    assert seen["minor_length"] == 2700
    assert fake_transport.queries[0] == f"q=happenings;filter=change;beforetime={T + 60};limit=200"


@pytest.mark.asyncio()
async def test_end_of_minor_propagates_parse_error(world, fake_transport):
    world.overrides.append("<WORLD><HAPPENINGS><EVENT id=\"1\"></HAPPENINGS></WORLD>")
    with pytest.raises(ParseError):
        await BoundaryScanner(fake_transport).end_of_minor(T)


# --------------------------------------------------------------------------- #
#                          delegate_changes_from                              #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_delegate_changes_collected_once(world, fake_transport):
    world.add_event(T + 100, "@@alpha@@ became WA Delegate of %%lazarus%%.", "member")
    world.add_event(T + 1000, "@@beta@@ became WA Delegate of %%osiris%%.", "member")
    world.add_event(T + 500, "@@gamma@@ was admitted to the World Assembly.", "member")
    world.add_event(T + 600, "@@delta@@ lost WA Delegate status in %%balder%%.", "member")
    scanner = BoundaryScanner(fake_transport)

    found = await scanner.delegate_changes_from(T)

    assert found == [
        Happening(event_id=1, timestamp=T + 100, text="@@alpha@@ became WA Delegate of %%lazarus%%."),
        Happening(event_id=2, timestamp=T + 1000, text="@@beta@@ became WA Delegate of %%osiris%%."),
    ]
    # [T, T+900] finds alpha, [T, T+1800] finds beta, [T, T+2700] finds nothing new
    assert fake_transport.queries == [
        f"q=happenings;filter=member;sincetime={T};beforetime={T + 900};limit=200",
        f"q=happenings;filter=member;sincetime={T};beforetime={T + 1800};limit=200",
        f"q=happenings;filter=member;sincetime={T};beforetime={T + 2700};limit=200",
    ]


@pytest.mark.asyncio()
async def test_delegate_changes_stop_when_nothing_new(world, fake_transport):
    world.add_event(T + 5000, "@@alpha@@ became WA Delegate of %%lazarus%%.", "member")
    found = await BoundaryScanner(fake_transport).delegate_changes_from(T)
    assert found == []
    assert len(fake_transport.queries) == 1


@pytest.mark.asyncio()
async def test_delegate_changes_capped_at_four_hours(world):
    class EndlessFeed:
        """Every call reports one more delegate change than the last."""

        def __init__(self):
            self.queries = []

        async def send(self, query):
            self.queries.append(query)
            await asyncio.sleep(0)
            events = "".join(
                f'<EVENT id="{n}"><TIMESTAMP>{T + n}</TIMESTAMP>'
                f"<TEXT>@@nation_{n}@@ became WA Delegate of %%region_{n}%%.</TEXT></EVENT>"
                for n in range(len(self.queries))
            )
            return f"<WORLD><HAPPENINGS>{events}</HAPPENINGS></WORLD>"

    feed = EndlessFeed()
    found = await BoundaryScanner(feed).delegate_changes_from(T)

    # 15 * 900 = 13500 < 14400 <= 16 * 900
    assert len(feed.queries) == 15
    assert len(found) == 15
    assert feed.queries[-1].endswith(f"beforetime={T + 13500};limit=200")


@pytest.mark.asyncio()
async def test_delegate_changes_respect_custom_window(world, fake_transport):
    world.add_event(T + 10, "@@alpha@@ became WA Delegate of %%lazarus%%.", "member")
    world.add_event(T + 70, "@@beta@@ became WA Delegate of %%osiris%%.", "member")
    world.add_event(T + 130, "@@gamma@@ became WA Delegate of %%balder%%.", "member")
    scanner = BoundaryScanner(fake_transport, increment=60, window_cap=150)

    found = await scanner.delegate_changes_from(T)

    # windows of 60 and 120 seconds only; 180 is past the cap
    assert [h.timestamp for h in found] == [T + 10, T + 70]
    assert len(fake_transport.queries) == 2
