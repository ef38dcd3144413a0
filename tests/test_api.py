from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from route_overlay import api
from route_overlay.errors import RouteDecodeError

from conftest import FakeDecoder


@pytest.fixture
def client_for(resolver):
    def build(decoder: FakeDecoder) -> TestClient:
        api.app.dependency_overrides[api.get_decoder] = lambda: decoder
        api.app.dependency_overrides[api.get_resolver] = lambda: resolver
        return TestClient(api.app)

    yield build
    api.app.dependency_overrides.clear()


def test_health(monkeypatch):
    monkeypatch.setattr(api, "get_redis", lambda: None)
    resp = TestClient(api.app).get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "redis": False}


def test_decode_route(client_for, plan):
    resp = client_for(FakeDecoder(plan)).post("/route/decode", json={"route": "KRDG KBUF"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["route_id"] == "KRDG-KBUF"
    assert body["coordinates"] == [[38.5, -120.2], [40.7, -120.95], [43.252, -126.453]]
    assert body["bounds"] == {"north": 43.252, "south": 38.5, "east": -120.2, "west": -126.453}
    assert [w["ident"] for w in body["waypoints"]] == ["KRDG", "DUMMR", "RAV", "SFK", "BUF", "KBUF"]
    assert body["waypoints"][2]["source"] == "lookup"


def test_unresolved_waypoint_has_null_position(client_for, plan_data):
    from route_overlay.core.models import FlightPlan

    plan_data["notes"] = "Requested: KRDG ZZZZZ"
    resp = client_for(FakeDecoder(FlightPlan.model_validate(plan_data))).post(
        "/route/decode", json={"route": "KRDG ZZZZZ"}
    )

    wp = resp.json()["waypoints"][1]
    assert wp["lat"] is None and wp["lon"] is None
    assert wp["reason"] == "not_found"


def test_upstream_server_failure_is_bad_gateway(client_for):
    decoder = FakeDecoder(error=RouteDecodeError("Failed to decode route: 500", status_code=500))
    resp = client_for(decoder).post("/route/decode", json={"route": "LFPG KJFK"})

    assert resp.status_code == 502


def test_upstream_client_failure_is_passed_through(client_for):
    decoder = FakeDecoder(error=RouteDecodeError("Failed to decode route: 404", status_code=404))
    resp = client_for(decoder).post("/route/decode", json={"route": "LFPG KJFK"})

    assert resp.status_code == 404


def test_invalid_geometry_is_bad_gateway(client_for, plan_data):
    from route_overlay.core.models import FlightPlan

    plan_data["encodedPolyline"] = "_p~iF"
    resp = client_for(FakeDecoder(FlightPlan.model_validate(plan_data))).post(
        "/route/decode", json={"route": "KRDG KBUF"}
    )

    assert resp.status_code == 502


def test_empty_route_is_rejected(client_for, plan):
    resp = client_for(FakeDecoder(plan)).post("/route/decode", json={"route": ""})
    assert resp.status_code == 422
