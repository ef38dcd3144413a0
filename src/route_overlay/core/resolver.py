"""Waypoint resolution: route nodes first, navaid search as fallback."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from route_overlay.cache.lookup_cache import LookupCache
from route_overlay.contracts.route_contract import (
    Coordinate,
    Resolved,
    ResolvedWaypoint,
    Unresolved,
)
from route_overlay.core.models import Navaid, RouteNode
from route_overlay.errors import LookupTransportError, NavaidLookupError
from route_overlay.providers.base import NavaidLookup

log = logging.getLogger(__name__)


def node_table(nodes: Iterable[RouteNode]) -> Dict[str, RouteNode]:
    """Index route nodes by upper-cased ident.  The first node of an ident wins."""
    table: Dict[str, RouteNode] = {}
    for node in nodes:
        table.setdefault(node.ident.upper(), node)
    return table


@dataclass(frozen=True)
class ResolutionPlan:
    waypoints: Tuple[ResolvedWaypoint, ...]
    # identifiers still needing a navaid search, first spelling seen, deduplicated
    pending: Tuple[str, ...]


def _from_navaid(ident: str, nav: Optional[Navaid]) -> ResolvedWaypoint:
    if nav is None or not nav.has_position:
        return Unresolved(ident, "not_found")
    return Resolved(
        ident=ident,
        coordinate=Coordinate(float(nav.lat), float(nav.lon)),
        name=nav.name,
        type=nav.type,
        source="lookup",
    )


class WaypointResolver:
    """
    Place each waypoint identifier on the map.

    Identifiers present in the route's node table with a finite position are
    resolved immediately.  The rest go through ``lookup``: one navaid search
    per identifier, first match wins, cached for ``cache.ttl_s``, one retry on
    transport failure.  A failed identifier comes back as ``Unresolved`` and
    never aborts the others.
    """

    def __init__(
        self,
        navaids: NavaidLookup,
        cache: Optional[LookupCache] = None,
        *,
        retries: int = 1,
        retry_delay_s: float = 0.5,
        max_concurrency: int = 8,
    ):
        self.navaids = navaids
        self.cache = cache if cache is not None else LookupCache()
        self.retries = retries
        self.retry_delay_s = retry_delay_s
        self.max_concurrency = max(1, max_concurrency)
        self.lookup_count = 0

    def resolve(
        self,
        identifiers: Sequence[str],
        table: Optional[Mapping[str, RouteNode]] = None,
    ) -> ResolutionPlan:
        """Synchronous pass over the node table.  Issues no I/O."""
        nodes = {k.upper(): v for k, v in (table or {}).items()}
        out: List[ResolvedWaypoint] = []
        pending: Dict[str, str] = {}

        for ident in identifiers:
            node = nodes.get(ident.upper())
            if node is not None and node.has_position:
                out.append(
                    Resolved(
                        ident=ident,
                        coordinate=Coordinate(float(node.lat), float(node.lon)),
                        name=node.name,
                        type=node.type,
                        source="route",
                    )
                )
            else:
                out.append(Unresolved(ident, "pending"))
                pending.setdefault(ident.upper(), ident)

        return ResolutionPlan(waypoints=tuple(out), pending=tuple(pending.values()))

    async def lookup(self, ident: str) -> ResolvedWaypoint:
        entry = await self.cache.aget(ident)
        if entry is not None:
            log.debug("Navaid cache hit for %s (miss=%s)", ident, entry.is_miss)
            return _from_navaid(ident, entry.navaid)

        attempt = 0
        while True:
            self.lookup_count += 1
            try:
                matches = await self.navaids.search(ident)
                break
            except LookupTransportError as e:
                if attempt < self.retries:
                    attempt += 1
                    log.debug("Navaid search for %s failed (%s), retrying", ident, e)
                    await asyncio.sleep(self.retry_delay_s)
                    continue
                log.warning("Navaid search for %s failed after %d attempt(s): %s", ident, attempt + 1, e)
                return Unresolved(ident, "lookup_failed")
            except NavaidLookupError as e:
                log.warning("Navaid search for %s returned an unusable response: %s", ident, e)
                return Unresolved(ident, "lookup_failed")

        # several navaids can share a short ident; the service ranks them, keep the first
        first = matches[0] if matches else None
        await self.cache.aput(ident, first)
        if first is None:
            log.info("No navaid found for waypoint %s", ident)
        return _from_navaid(ident, first)

    async def resolve_all(
        self,
        identifiers: Sequence[str],
        table: Optional[Mapping[str, RouteNode]] = None,
    ) -> List[ResolvedWaypoint]:
        """Resolve every identifier; the result follows input order."""
        plan = self.resolve(identifiers, table)
        if not plan.pending:
            return list(plan.waypoints)

        limit = asyncio.Semaphore(self.max_concurrency)

        async def bounded(ident: str) -> ResolvedWaypoint:
            async with limit:
                return await self.lookup(ident)

        found = await asyncio.gather(*(bounded(i) for i in plan.pending))
        by_key = {ident.upper(): wp for ident, wp in zip(plan.pending, found)}

        out: List[ResolvedWaypoint] = []
        for wp in plan.waypoints:
            if isinstance(wp, Unresolved) and wp.reason == "pending":
                hit = by_key[wp.ident.upper()]
                # keep the caller's spelling for each position
                if isinstance(hit, Resolved):
                    hit = Resolved(wp.ident, hit.coordinate, hit.name, hit.type, hit.source)
                else:
                    hit = Unresolved(wp.ident, hit.reason)
                out.append(hit)
            else:
                out.append(wp)
        return out
