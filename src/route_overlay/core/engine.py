from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from route_overlay.contracts.route_contract import DecodedPath, Resolved, ResolvedWaypoint
from route_overlay.core.models import FlightPlan
from route_overlay.core.notes import parse_waypoints
from route_overlay.core.polyline import decode_polyline
from route_overlay.core.resolver import WaypointResolver, node_table
from route_overlay.providers.base import RouteDecoder

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteView:
    route_id: str
    path: DecodedPath
    waypoints: List[ResolvedWaypoint]
    plan: Optional[FlightPlan] = None

    @property
    def visible_waypoints(self) -> Iterator[Resolved]:
        """Waypoints with a position.  Unresolved ones are never drawn."""
        return (wp for wp in self.waypoints if isinstance(wp, Resolved))

    def to_dict(self) -> Dict[str, Any]:
        bounds = self.path.bounds
        return {
            "route_id": self.route_id,
            "coordinates": [[c.lat, c.lon] for c in self.path.coordinates],
            "bounds": None
            if bounds.is_empty
            else {"north": bounds.north, "south": bounds.south, "east": bounds.east, "west": bounds.west},
            "waypoints": [_waypoint_dict(wp) for wp in self.waypoints],
        }


def _waypoint_dict(wp: ResolvedWaypoint) -> Dict[str, Any]:
    if isinstance(wp, Resolved):
        return {
            "ident": wp.ident,
            "lat": wp.coordinate.lat,
            "lon": wp.coordinate.lon,
            "name": wp.name,
            "type": wp.type,
            "source": wp.source,
        }
    return {"ident": wp.ident, "lat": None, "lon": None, "reason": wp.reason}


async def build_route_view(plan: FlightPlan, resolver: WaypointResolver) -> RouteView:
    # decode geometry first: a bad polyline aborts before any lookup is issued
    path = decode_polyline(plan.encoded_polyline)
    idents = parse_waypoints(plan.notes)
    waypoints = await resolver.resolve_all(idents, node_table(plan.nodes))

    n_visible = sum(1 for wp in waypoints if isinstance(wp, Resolved))
    log.info(
        "Route %s: %d points, %d/%d waypoints placed",
        plan.label, len(path), n_visible, len(waypoints),
    )
    return RouteView(route_id=plan.label, path=path, waypoints=waypoints, plan=plan)


async def render_route(route: str, decoder: RouteDecoder, resolver: WaypointResolver) -> RouteView:
    """Decode ``route`` upstream and resolve it.  RouteDecodeError propagates."""
    plan = await decoder.decode(route)
    return await build_route_view(plan, resolver)
