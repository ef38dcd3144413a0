"""Explicit publish step for route views.

Each new request starts a generation.  A view computed for an older
generation is dropped instead of reaching subscribers, so a slow decode can
never overwrite the route the user asked for last.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Optional

from route_overlay.core.engine import RouteView

log = logging.getLogger(__name__)

Subscriber = Callable[[RouteView], None]


class RouteChannel:
    def __init__(self) -> None:
        self._generation = 0
        self._subscribers: List[Subscriber] = []
        self.latest: Optional[RouteView] = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, generation: int, view: RouteView) -> bool:
        if generation != self._generation:
            log.debug("Dropping stale route %s (generation %d, current %d)",
                      view.route_id, generation, self._generation)
            return False

        self.latest = view
        for cb in list(self._subscribers):
            try:
                cb(view)
            except Exception:
                log.exception("Route subscriber %r failed", cb)
        return True

    async def track(self, work: Awaitable[RouteView]) -> bool:
        """Start a generation, await ``work``, publish if still current."""
        gen = self.begin()
        view = await work
        return self.publish(gen, view)
