from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from route_overlay.core.models import FlightPlan, Navaid


class NavaidLookup(ABC):
    """Resolve a waypoint identifier to candidate navaids."""

    @abstractmethod
    async def search(self, ident: str) -> List[Navaid]:
        """Matches for ``ident``, most relevant first.

        Raises LookupTransportError / LookupResponseError on failure.
        """
        raise NotImplementedError


class RouteDecoder(ABC):
    """Turn a free-text route into a decoded flight plan."""

    @abstractmethod
    async def decode(self, route: str) -> FlightPlan:
        """Raises RouteDecodeError when the route cannot be decoded."""
        raise NotImplementedError
