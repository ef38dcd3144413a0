from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest
import requests

from route_overlay.cache.lookup_cache import LookupCache
from route_overlay.core.models import FlightPlan, Navaid
from route_overlay.core.resolver import WaypointResolver
from route_overlay.providers.base import RouteDecoder
from route_overlay.providers.static import StaticNavaidLookup

# [[38.5, -120.2], [40.7, -120.95], [43.252, -126.453]]
SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, s: float) -> None:
        self.t += s


class FakeDecoder(RouteDecoder):
    def __init__(self, plan: FlightPlan | None = None, error: Exception | None = None):
        self.plan = plan
        self.error = error
        self.routes: List[str] = []

    async def decode(self, route: str) -> FlightPlan:
        self.routes.append(route)
        if self.error is not None:
            raise self.error
        return self.plan


def make_response(status: int, payload: Any = None, text: str | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.url = "https://api.example.test/"
    r.encoding = "utf-8"
    if payload is not None:
        r._content = json.dumps(payload).encode()
    else:
        r._content = (text or "").encode()
    return r


@pytest.fixture
def plan_data() -> Dict[str, Any]:
    return {
        "id": 4242,
        "fromICAO": "KRDG",
        "toICAO": "KBUF",
        "fromName": "Reading Regional",
        "toName": "Buffalo Niagara Intl",
        "distance": 241.3,
        "maxAltitude": 18000,
        "waypoints": 7,
        "notes": "Basic route generated\nRequested: KRDG DUMMR T438 RAV SFK BUF KBUF\nUnmatched points: T438",
        "encodedPolyline": SAMPLE_POLYLINE,
        "tags": ["generated"],
        "route": {
            "nodes": [
                {"ident": "KRDG", "type": "APT", "lat": 40.3785, "lon": -75.9652, "alt": 0, "name": "Reading Regional", "via": None},
                {"ident": "DUMMR", "type": "FIX", "lat": 40.72, "lon": -76.51, "alt": 18000, "name": None, "via": None},
                {"ident": "KBUF", "type": "APT", "lat": 42.9405, "lon": -78.7322, "alt": 0, "name": "Buffalo Niagara Intl", "via": None},
            ]
        },
    }


@pytest.fixture
def plan(plan_data) -> FlightPlan:
    return FlightPlan.model_validate(plan_data)


@pytest.fixture
def navaids() -> StaticNavaidLookup:
    return StaticNavaidLookup(
        [
            Navaid(ident="RAV", lat=41.1213, lon=-77.9072, name="Ravine", type="VORTAC"),
            Navaid(ident="SFK", lat=41.1, lon=-76.6, name="Selinsgrove", type="VORTAC"),
            Navaid(ident="BUF", lat=42.9291, lon=-78.6461, name="Buffalo", type="VOR-DME"),
            # second BUF match on another continent must lose
            Navaid(ident="BUF", lat=-12.0, lon=30.0, name="Elsewhere", type="NDB"),
        ]
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def resolver(navaids, clock) -> WaypointResolver:
    return WaypointResolver(navaids, LookupCache(86400, clock=clock), retry_delay_s=0)
