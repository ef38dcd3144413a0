from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from route_overlay.cache.lookup_cache import LookupCache
from route_overlay.config import settings
from route_overlay.contracts.route_contract import Resolved
from route_overlay.core.engine import RouteView, build_route_view, render_route
from route_overlay.core.models import FlightPlan
from route_overlay.core.resolver import WaypointResolver
from route_overlay.errors import RouteOverlayError
from route_overlay.providers.base import NavaidLookup
from route_overlay.providers.flightplandb import FlightPlanDBService
from route_overlay.providers.static import StaticNavaidLookup


def _read_plan(path: Path) -> FlightPlan:
    data = json.loads(path.read_text(encoding="utf-8"))
    return FlightPlan.model_validate(data)


def _save_json(path: Path, obj) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2), encoding="utf-8")


def _print_view(console: Console, view: RouteView) -> None:
    table = Table(title=f"Route {view.route_id}")
    table.add_column("#", justify="right")
    table.add_column("Ident")
    table.add_column("Lat")
    table.add_column("Lon")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Status")

    for i, wp in enumerate(view.waypoints, start=1):
        if isinstance(wp, Resolved):
            table.add_row(
                str(i), wp.ident,
                f"{wp.coordinate.lat:.4f}", f"{wp.coordinate.lon:.4f}",
                wp.name or "", wp.type or "", wp.source,
            )
        else:
            table.add_row(str(i), wp.ident, "", "", "", "", f"[red]{wp.reason}[/red]")

    console.print(table)

    b = view.path.bounds
    if b.is_empty:
        console.print("Path: no geometry")
    else:
        console.print(
            f"Path: {len(view.path)} points, "
            f"N {b.north:.4f} S {b.south:.4f} E {b.east:.4f} W {b.west:.4f}"
        )


async def _run(args: argparse.Namespace) -> RouteView:
    service = FlightPlanDBService()
    navaids: NavaidLookup = (
        StaticNavaidLookup.from_json_file(Path(args.navaids)) if args.navaids else service
    )
    resolver = WaypointResolver(
        navaids,
        LookupCache(settings.ttl_navaid, cache_misses=settings.cache_navaid_misses),
        retries=settings.lookup_retries,
        retry_delay_s=settings.lookup_retry_delay_s,
        max_concurrency=settings.max_concurrent_lookups,
    )

    if args.plan:
        return await build_route_view(_read_plan(Path(args.plan)), resolver)
    return await render_route(args.route, service, resolver)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="route-overlay", description="Decode a flight-plan route and place its waypoints")
    ap.add_argument("route", nargs="?", help="Route string, e.g. 'LFPG BOBIG UN491 KJFK'")
    ap.add_argument("--plan", help="Decoded flight-plan JSON file (skips the decode call)")
    ap.add_argument("--navaids", help="Navaid JSON file used instead of the search API")
    ap.add_argument("--out", help="Write the route view as JSON to this path")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    if not args.route and not args.plan:
        ap.error("a route or --plan is required")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [route-overlay] %(levelname)s %(message)s",
    )

    console = Console()
    try:
        view = asyncio.run(_run(args))
    except (RouteOverlayError, ValueError, OSError) as e:
        # ValueError also covers unreadable or malformed plan JSON
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        return 1

    _print_view(console, view)

    if args.out:
        out = Path(args.out)
        _save_json(out, view.to_dict())
        console.print(f"Saved: {out.resolve()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
