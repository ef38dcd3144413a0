"""In-process TTL caches for decoded routes and navaid lookups.

Instances are owned by whoever builds them (resolver, service, app); there is
no module-level cache.  Both caches are only touched from the event loop;
blocking Redis calls run in worker threads.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from route_overlay.cache import keys
from route_overlay.cache.redis_client import cache_get_json, cache_set_json
from route_overlay.core.models import Navaid

log = logging.getLogger(__name__)

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Dict with per-entry expiry.  Last writer wins.

    Expired entries are dropped on read and swept on every write.  With
    ``maxsize`` set, the oldest entries are evicted first.
    """

    def __init__(
        self,
        ttl_s: float,
        clock: Callable[[], float] = time.monotonic,
        maxsize: Optional[int] = None,
    ):
        self.ttl_s = ttl_s
        self.maxsize = maxsize
        self._clock = clock
        self._entries: Dict[str, Tuple[V, float]] = {}

    def get(self, key: str) -> Optional[V]:
        hit = self._entries.get(key)
        if hit is None:
            return None
        value, expires_at = hit
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def put(self, key: str, value: V) -> None:
        now = self._clock()
        self._prune(now)
        # re-inserting moves the key to the young end
        self._entries.pop(key, None)
        self._entries[key] = (value, now + self.ttl_s)
        if self.maxsize is not None:
            while len(self._entries) > self.maxsize:
                oldest = next(iter(self._entries))
                self._entries.pop(oldest, None)

    def _prune(self, now: float) -> None:
        dead = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in dead:
            self._entries.pop(k, None)

    def reset(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self._prune(self._clock())
        return len(self._entries)


@dataclass(frozen=True)
class CacheEntry:
    # None means "searched, nothing found"
    navaid: Optional[Navaid]

    @property
    def is_miss(self) -> bool:
        return self.navaid is None


class LookupCache:
    """Navaid lookup results keyed by upper-cased identifier.

    ``get`` / ``put`` work on the in-process layer only.  ``aget`` / ``aput``
    also consult ``backend``, an optional Redis connection shared between
    processes, without blocking the event loop.
    """

    def __init__(
        self,
        ttl_s: float = 86400,
        *,
        cache_misses: bool = True,
        backend: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache_misses = cache_misses
        self.backend = backend
        self._local: TTLCache[CacheEntry] = TTLCache(ttl_s, clock=clock)

    @property
    def ttl_s(self) -> float:
        return self._local.ttl_s

    @staticmethod
    def _key(ident: str) -> str:
        return ident.strip().upper()

    def get(self, ident: str) -> Optional[CacheEntry]:
        return self._local.get(self._key(ident))

    def put(self, ident: str, navaid: Optional[Navaid]) -> None:
        if navaid is None and not self.cache_misses:
            return
        self._local.put(self._key(ident), CacheEntry(navaid=navaid))

    async def aget(self, ident: str) -> Optional[CacheEntry]:
        entry = self.get(ident)
        if entry is not None or self.backend is None:
            return entry

        key = self._key(ident)
        raw = await asyncio.to_thread(cache_get_json, self.backend, keys.navaid(key))
        if raw is None or not isinstance(raw, dict):
            return None
        try:
            nav = raw.get("navaid")
            entry = CacheEntry(navaid=Navaid(**nav) if nav is not None else None)
        except Exception as exc:
            log.debug("Ignoring unreadable shared cache entry for %s: %s", key, exc)
            return None
        if entry.is_miss and not self.cache_misses:
            return None
        self._local.put(key, entry)
        return entry

    async def aput(self, ident: str, navaid: Optional[Navaid]) -> None:
        if navaid is None and not self.cache_misses:
            return
        self.put(ident, navaid)
        if self.backend is None:
            return
        payload = {"navaid": navaid.model_dump() if navaid is not None else None}
        await asyncio.to_thread(
            cache_set_json, self.backend, keys.navaid(self._key(ident)), payload, int(self.ttl_s)
        )

    def reset(self) -> None:
        """Clear the in-process layer.  Shared entries expire on their own."""
        self._local.reset()

    def __contains__(self, ident: str) -> bool:
        return self._key(ident) in self._local

    def __len__(self) -> int:
        return len(self._local)
