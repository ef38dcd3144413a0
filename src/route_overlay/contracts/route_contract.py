# path: route-overlay/src/route_overlay/contracts/route_contract.py

from __future__ import annotations
from dataclasses import dataclass
from math import inf, isfinite
from typing import Iterator, Literal, Optional, Tuple, Union


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def __iter__(self) -> Iterator[float]:
        # unpacks as (lat, lon), the order map layers expect
        yield self.lat
        yield self.lon

    def __getitem__(self, i: int) -> float:
        return (self.lat, self.lon)[i]

    def __len__(self) -> int:
        return 2

    @property
    def is_finite(self) -> bool:
        return isfinite(self.lat) and isfinite(self.lon)


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float

    @classmethod
    def empty(cls) -> "BoundingBox":
        """Sentinel for a path with no extent."""
        return cls(north=-inf, south=inf, east=-inf, west=inf)

    @property
    def is_empty(self) -> bool:
        return self.north < self.south or self.east < self.west

    def contains(self, c: Coordinate) -> bool:
        if self.is_empty:
            return False
        return self.south <= c.lat <= self.north and self.west <= c.lon <= self.east

    def as_corners(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """((south, west), (north, east)) for fitting a map view."""
        if self.is_empty:
            raise ValueError("empty bounding box has no corners")
        return (self.south, self.west), (self.north, self.east)


@dataclass(frozen=True)
class DecodedPath:
    coordinates: Tuple[Coordinate, ...]
    bounds: BoundingBox

    def __len__(self) -> int:
        return len(self.coordinates)


UnresolvedReason = Literal["pending", "not_found", "lookup_failed"]
WaypointSource = Literal["route", "lookup"]


@dataclass(frozen=True)
class Resolved:
    ident: str
    coordinate: Coordinate
    name: Optional[str] = None
    type: Optional[str] = None
    source: WaypointSource = "lookup"

    def __post_init__(self) -> None:
        if not self.coordinate.is_finite:
            raise ValueError(f"resolved waypoint {self.ident!r} needs a finite coordinate")


@dataclass(frozen=True)
class Unresolved:
    ident: str
    reason: UnresolvedReason = "pending"


ResolvedWaypoint = Union[Resolved, Unresolved]
