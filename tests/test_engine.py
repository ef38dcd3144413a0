from __future__ import annotations

import asyncio

import pytest

from route_overlay.contracts.route_contract import Coordinate, Resolved, Unresolved
from route_overlay.core.engine import RouteView, build_route_view, render_route
from route_overlay.core.models import FlightPlan
from route_overlay.core.polyline import decode_polyline
from route_overlay.core.publisher import RouteChannel
from route_overlay.errors import PolylineDecodeError, RouteDecodeError

from conftest import FakeDecoder


async def test_build_route_view(plan, resolver, navaids):
    view = await build_route_view(plan, resolver)

    assert view.route_id == "KRDG-KBUF"
    assert len(view.path) == 3
    assert view.path.bounds.north == 43.252
    assert [wp.ident for wp in view.waypoints] == ["KRDG", "DUMMR", "RAV", "SFK", "BUF", "KBUF"]
    assert all(isinstance(wp, Resolved) for wp in view.waypoints)
    # KRDG, DUMMR and KBUF come from the route nodes
    assert sorted(navaids.calls) == ["BUF", "RAV", "SFK"]


async def test_unresolved_waypoints_are_invisible(plan_data, resolver):
    plan_data["notes"] = "Requested: KRDG ZZZZZ KBUF"
    view = await build_route_view(FlightPlan.model_validate(plan_data), resolver)

    assert view.waypoints[1] == Unresolved("ZZZZZ", "not_found")
    assert [wp.ident for wp in view.visible_waypoints] == ["KRDG", "KBUF"]

    payload = view.to_dict()
    assert payload["waypoints"][1] == {"ident": "ZZZZZ", "lat": None, "lon": None, "reason": "not_found"}


async def test_zero_zero_waypoint_is_drawn(plan_data, resolver):
    plan_data["notes"] = "Requested: NULL"
    plan_data["route"]["nodes"].append({"ident": "NULL", "type": "FIX", "lat": 0, "lon": 0})
    view = await build_route_view(FlightPlan.model_validate(plan_data), resolver)

    assert list(view.visible_waypoints) == [Resolved("NULL", Coordinate(0.0, 0.0), None, "FIX", "route")]
    assert view.to_dict()["waypoints"][0]["lat"] == 0.0


async def test_plan_without_nodes_or_geometry(resolver):
    plan = FlightPlan(notes="", encodedPolyline="")
    view = await build_route_view(plan, resolver)

    assert view.waypoints == []
    assert view.path.bounds.is_empty
    assert view.to_dict()["bounds"] is None


async def test_bad_polyline_aborts_before_lookups(plan_data, resolver, navaids):
    plan_data["encodedPolyline"] = "_p~iF"
    with pytest.raises(PolylineDecodeError):
        await build_route_view(FlightPlan.model_validate(plan_data), resolver)
    assert navaids.calls == []


async def test_render_route_propagates_decode_failure(resolver, navaids):
    decoder = FakeDecoder(error=RouteDecodeError("Failed to decode route: 500", status_code=500))

    with pytest.raises(RouteDecodeError):
        await render_route("LFPG KJFK", decoder, resolver)
    assert navaids.calls == []


async def test_render_route(plan, resolver):
    decoder = FakeDecoder(plan)
    view = await render_route("KRDG KBUF", decoder, resolver)

    assert decoder.routes == ["KRDG KBUF"]
    assert view.plan is plan


def _view(route_id: str) -> RouteView:
    return RouteView(route_id=route_id, path=decode_polyline(""), waypoints=[])


def test_channel_publishes_current_generation():
    channel = RouteChannel()
    seen = []
    channel.subscribe(seen.append)

    gen = channel.begin()
    assert channel.publish(gen, _view("A"))
    assert [v.route_id for v in seen] == ["A"]
    assert channel.latest.route_id == "A"


def test_channel_drops_superseded_generation():
    channel = RouteChannel()
    seen = []
    channel.subscribe(seen.append)

    old = channel.begin()
    new = channel.begin()
    assert channel.publish(new, _view("new"))
    assert not channel.publish(old, _view("old"))
    assert [v.route_id for v in seen] == ["new"]
    assert channel.latest.route_id == "new"


def test_channel_unsubscribe_and_failing_subscriber():
    channel = RouteChannel()
    seen = []

    def boom(view):
        raise RuntimeError("subscriber bug")

    channel.subscribe(boom)
    unsubscribe = channel.subscribe(seen.append)
    assert channel.publish(channel.begin(), _view("A"))
    assert len(seen) == 1

    unsubscribe()
    channel.publish(channel.begin(), _view("B"))
    assert len(seen) == 1


async def test_channel_track_discards_slow_stale_render():
    channel = RouteChannel()
    seen = []
    channel.subscribe(seen.append)

    async def slow(route_id: str, delay: float) -> RouteView:
        await asyncio.sleep(delay)
        return _view(route_id)

    results = await asyncio.gather(
        channel.track(slow("first", 0.05)),
        channel.track(slow("second", 0.0)),
    )

    assert results == [False, True]
    assert [v.route_id for v in seen] == ["second"]
