"""Flight Plan Database API: route decoding and navaid search."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from route_overlay.cache import keys
from route_overlay.cache.lookup_cache import TTLCache
from route_overlay.config import Settings, settings
from route_overlay.core.models import FlightPlan, Navaid
from route_overlay.errors import LookupResponseError, LookupTransportError, RouteDecodeError
from route_overlay.providers.base import NavaidLookup, RouteDecoder
from route_overlay.providers.http import HTTPClient

log = logging.getLogger(__name__)


def _status_of(exc: requests.RequestException) -> Optional[int]:
    resp = getattr(exc, "response", None)
    return getattr(resp, "status_code", None)


class FlightPlanDBClient:
    """
    Blocking client for the two endpoints the route overlay needs:

      - POST /auto/decode   {route} -> flight plan (polyline, notes, nodes)
      - GET  /search/nav?q= ident   -> [navaid, ...]

    When ``api_key`` is set it is sent as the Basic-auth username with an
    empty password, the same scheme the browser proxy used.
    """

    def __init__(
        self,
        cfg: Settings = settings,
        http: Optional[HTTPClient] = None,
    ):
        self.cfg = cfg
        self.base_url = cfg.api_base_url.rstrip("/")
        self.http = http or HTTPClient(
            user_agent=cfg.user_agent,
            accept=cfg.accept_media_type,
            timeout_s=cfg.http_timeout_s,
            tries=cfg.http_tries,
            backoff_s=cfg.http_backoff_s,
            auth=(cfg.api_key, "") if cfg.api_key else None,
        )

    def decode_route(self, route: str) -> FlightPlan:
        if not route or not route.strip():
            raise ValueError("Route parameter is required")

        url = f"{self.base_url}/auto/decode"
        try:
            data = self.http.post_json(url, {"route": route})
        except requests.HTTPError as e:
            status = _status_of(e)
            raise RouteDecodeError(f"Failed to decode route: {status}", status_code=status) from e
        except ValueError as e:
            raise RouteDecodeError(f"Failed to decode route: invalid JSON ({e})") from e
        except requests.RequestException as e:
            raise RouteDecodeError(f"Failed to decode route: {type(e).__name__}: {e}") from e

        if not isinstance(data, dict):
            raise RouteDecodeError("Failed to decode route: response is not an object")
        try:
            plan = FlightPlan.model_validate(data)
        except ValidationError as e:
            raise RouteDecodeError(f"Failed to decode route: unexpected shape ({e.error_count()} errors)") from e

        log.info("Decoded route %s (%d nodes)", plan.label, len(plan.nodes))
        return plan

    def search_nav(self, query: str) -> List[Navaid]:
        url = f"{self.base_url}/search/nav"
        try:
            # retries are owned by the resolver, one attempt here
            data = self.http.get_json(
                url,
                params={"q": query},
                headers={"Accept": self.cfg.accept_media_type},
                tries=1,
            )
        except requests.HTTPError as e:
            status = _status_of(e)
            raise LookupTransportError(f"Failed to search navaid {query!r}: {status}", status_code=status) from e
        except ValueError as e:
            # requests' JSONDecodeError is also a RequestException, check it first
            raise LookupResponseError(f"Navaid search for {query!r} returned invalid JSON") from e
        except requests.RequestException as e:
            raise LookupTransportError(f"Failed to search navaid {query!r}: {type(e).__name__}") from e

        if not isinstance(data, list):
            raise LookupResponseError(f"Navaid search for {query!r} did not return an array")
        try:
            return [Navaid.model_validate(item) for item in data]
        except ValidationError as e:
            raise LookupResponseError(f"Navaid search for {query!r} returned malformed matches") from e


class FlightPlanDBService(RouteDecoder, NavaidLookup):
    """Async face of FlightPlanDBClient.

    Blocking requests run in worker threads so the event loop stays free.
    Decoded plans are cached per route for ``ttl_decode`` seconds; the cache
    is read and written on the loop only.
    """

    def __init__(
        self,
        client: Optional[FlightPlanDBClient] = None,
        decode_cache: Optional[TTLCache[FlightPlan]] = None,
    ):
        self.client = client or FlightPlanDBClient()
        if decode_cache is None:
            decode_cache = TTLCache(settings.ttl_decode, maxsize=1024)
        self.decode_cache = decode_cache

    async def decode(self, route: str) -> FlightPlan:
        if not route or not route.strip():
            raise ValueError("Route parameter is required")

        cache_key = keys.flightplan_decode(route)
        cached = self.decode_cache.get(cache_key)
        if cached is not None:
            log.debug("Decode cache hit for %r", route)
            return cached

        plan = await asyncio.to_thread(self.client.decode_route, route)
        self.decode_cache.put(cache_key, plan)
        return plan

    async def search(self, ident: str) -> List[Navaid]:
        return await asyncio.to_thread(self.client.search_nav, ident)
