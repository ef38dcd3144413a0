"""FastAPI backend serving decoded routes to the map frontend."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from route_overlay.cache.lookup_cache import LookupCache
from route_overlay.cache.redis_client import get_redis
from route_overlay.config import settings
from route_overlay.core.engine import render_route
from route_overlay.core.resolver import WaypointResolver
from route_overlay.errors import PolylineDecodeError, RouteDecodeError
from route_overlay.providers.base import RouteDecoder
from route_overlay.providers.flightplandb import FlightPlanDBService

log = logging.getLogger(__name__)

app = FastAPI(title="Route Overlay", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Module-level collaborators (caches persist across requests)
# ---------------------------------------------------------------------------
_service: Optional[FlightPlanDBService] = None
_resolver: Optional[WaypointResolver] = None


def get_decoder() -> RouteDecoder:
    global _service
    if _service is None:
        _service = FlightPlanDBService()
    return _service


def get_resolver() -> WaypointResolver:
    global _resolver
    if _resolver is None:
        cache = LookupCache(
            settings.ttl_navaid,
            cache_misses=settings.cache_navaid_misses,
            backend=get_redis(),
        )
        service = get_decoder()
        _resolver = WaypointResolver(
            service,
            cache,
            retries=settings.lookup_retries,
            retry_delay_s=settings.lookup_retry_delay_s,
            max_concurrency=settings.max_concurrent_lookups,
        )
    return _resolver


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class DecodeRouteRequest(BaseModel):
    route: str = Field(..., min_length=1, description="e.g. 'LFPG BOBIG UN491 KJFK'")


class BoundsOut(BaseModel):
    north: float
    south: float
    east: float
    west: float


class WaypointOut(BaseModel):
    ident: str
    # null means unresolved: never drawn, never (0, 0)
    lat: Optional[float] = None
    lon: Optional[float] = None
    name: Optional[str] = None
    type: Optional[str] = None
    source: Optional[str] = None
    reason: Optional[str] = None


class RouteViewOut(BaseModel):
    route_id: str
    coordinates: List[List[float]]
    bounds: Optional[BoundsOut] = None
    waypoints: List[WaypointOut] = []


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> Dict[str, object]:
    redis_ok = False
    r = get_redis()
    if r is not None:
        try:
            r.ping()
            redis_ok = True
        except Exception as exc:
            log.debug("Redis ping failed: %s", exc)
    return {"status": "ok", "redis": redis_ok}


@app.post("/route/decode", response_model=RouteViewOut)
async def decode_route(
    req: DecodeRouteRequest,
    decoder: RouteDecoder = Depends(get_decoder),
    resolver: WaypointResolver = Depends(get_resolver),
):
    try:
        view = await render_route(req.route, decoder, resolver)
    except PolylineDecodeError as e:
        log.warning("Route %r has an invalid polyline: %s", req.route, e)
        raise HTTPException(status_code=502, detail=f"Invalid route geometry: {e}")
    except RouteDecodeError as e:
        log.warning("Route %r could not be decoded: %s", req.route, e)
        status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
        raise HTTPException(status_code=status, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return view.to_dict()
