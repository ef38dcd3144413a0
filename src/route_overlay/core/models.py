from __future__ import annotations

from math import isfinite
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _finite(v: Optional[float]) -> bool:
    # 0.0 is a real position, only absence / NaN / inf count as missing
    return v is not None and isfinite(v)


class RouteVia(BaseModel):
    ident: Optional[str] = None
    type: Optional[str] = None


class RouteNode(BaseModel):
    """A waypoint the decode service already placed on the map."""

    model_config = ConfigDict(extra="ignore")

    ident: str
    type: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt: Optional[float] = None
    name: Optional[str] = None
    via: Optional[RouteVia] = None

    @property
    def has_position(self) -> bool:
        return _finite(self.lat) and _finite(self.lon)


class Route(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: List[RouteNode] = Field(default_factory=list)


class Cycle(BaseModel):
    id: Optional[int] = None
    ident: Optional[str] = None
    year: Optional[int] = None
    release: Optional[int] = None


class FlightPlan(BaseModel):
    """Response of ``POST /auto/decode``.  Only ``notes`` and
    ``encodedPolyline`` are needed downstream; the rest rides along for
    display."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None
    from_icao: Optional[str] = Field(default=None, alias="fromICAO")
    to_icao: Optional[str] = Field(default=None, alias="toICAO")
    from_name: Optional[str] = Field(default=None, alias="fromName")
    to_name: Optional[str] = Field(default=None, alias="toName")
    flight_number: Optional[str] = Field(default=None, alias="flightNumber")
    distance: Optional[float] = None
    max_altitude: Optional[float] = Field(default=None, alias="maxAltitude")
    waypoint_count: Optional[int] = Field(default=None, alias="waypoints")
    notes: str = ""
    encoded_polyline: str = Field(default="", alias="encodedPolyline")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    tags: List[str] = Field(default_factory=list)
    cycle: Optional[Cycle] = None
    user: Optional[Dict[str, Any]] = None
    route: Optional[Route] = None

    @property
    def nodes(self) -> List[RouteNode]:
        return self.route.nodes if self.route is not None else []

    @property
    def label(self) -> str:
        if self.from_icao or self.to_icao:
            return f"{self.from_icao or '?'}-{self.to_icao or '?'}"
        return str(self.id) if self.id is not None else "route"


class Navaid(BaseModel):
    """One match from ``GET /search/nav``."""

    model_config = ConfigDict(extra="ignore")

    ident: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    name: Optional[str] = None
    type: Optional[str] = None

    @property
    def has_position(self) -> bool:
        return _finite(self.lat) and _finite(self.lon)
