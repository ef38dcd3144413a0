"""Redis connection + JSON helpers for the optional shared cache.

Every operation tolerates failure: Redis being down never breaks a route.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)

_redis_client = None
_redis_checked = False


def get_redis():
    """Lazy connection.  Returns ``redis.Redis`` or ``None`` if unavailable."""
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client
    _redis_checked = True
    try:
        from route_overlay.config import settings

        if not settings.redis_url:
            return None
        import redis

        _redis_client = redis.Redis.from_url(
            settings.redis_url, decode_responses=True, socket_connect_timeout=3, socket_timeout=2
        )
        _redis_client.ping()
        log.info("Redis connected: %s", settings.redis_url)
    except Exception as exc:
        log.warning("Redis unavailable (%s), running with in-process cache only", exc)
        _redis_client = None
    return _redis_client


def reset_redis() -> None:
    """Forget the connection so the next ``get_redis()`` re-reads settings."""
    global _redis_client, _redis_checked
    _redis_client = None
    _redis_checked = False


def cache_get_json(r, key: str) -> Optional[Any]:
    if r is None:
        return None
    try:
        raw = r.get(key)
        if raw is None:
            return None
        return json.loads(raw)
    except Exception as exc:
        log.debug("Redis get %s failed: %s", key, exc)
        return None


def cache_set_json(r, key: str, value: Any, ttl: int) -> None:
    if r is None:
        return
    try:
        r.set(key, json.dumps(value), ex=ttl)
    except Exception as exc:
        log.debug("Redis set %s failed: %s", key, exc)
