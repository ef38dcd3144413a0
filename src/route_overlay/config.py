"""Centralized settings for route-overlay."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "ROUTE_OVERLAY_"}

    # Flight Plan Database API
    api_base_url: str = "https://api.flightplandatabase.com"
    api_key: str = ""  # empty string means anonymous requests
    accept_media_type: str = "application/vnd.fpd.v1+json"
    user_agent: str = "RouteOverlay/0.1.0"

    # HTTP client
    http_timeout_s: int = 20
    http_tries: int = 2              # first attempt + one retry
    http_backoff_s: float = 0.5      # fixed delay between attempts

    # Redis: empty string means disabled (in-process cache only)
    redis_url: str = ""

    # TTL values in seconds
    ttl_navaid: int = 86400          # 24 h, navaid positions are effectively static
    ttl_decode: int = 300            # 5 min, decoded flight plans
    cache_navaid_misses: bool = True

    # Waypoint resolution
    lookup_retries: int = 1
    lookup_retry_delay_s: float = 0.5
    max_concurrent_lookups: int = 8


settings = Settings()
