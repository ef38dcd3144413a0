"""Exception taxonomy for route decoding and waypoint resolution."""
from __future__ import annotations

from typing import Optional


class RouteOverlayError(Exception):
    """Base class for every error raised by route_overlay."""


class PolylineDecodeError(RouteOverlayError, ValueError):
    """The encoded polyline is malformed or truncated."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class RouteDecodeError(RouteOverlayError):
    """The upstream route-decode call failed; fatal for the whole route."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NavaidLookupError(RouteOverlayError):
    """A single navaid search failed.  Never fatal for a route."""


class LookupTransportError(NavaidLookupError):
    """Network failure or non-2xx status.  Worth one retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LookupResponseError(NavaidLookupError):
    """The search answered, but not with a JSON array of matches."""
