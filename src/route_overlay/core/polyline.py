"""Encoded polyline decoding (Google / Mapbox format, 1e5 precision)."""
from __future__ import annotations

from typing import Iterable, List, Tuple

from route_overlay.contracts.route_contract import BoundingBox, Coordinate, DecodedPath
from route_overlay.errors import PolylineDecodeError

_OFFSET = 63
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20
_MAX_CHAR = 126


def _read_value(encoded: str, index: int) -> Tuple[int, int]:
    """Read one zig-zag varint starting at ``index``.

    Returns (signed value, index of the next component).
    """
    result = 0
    shift = 0
    start = index
    while True:
        if index >= len(encoded):
            raise PolylineDecodeError(
                f"truncated polyline: component at {start} never terminates", position=start
            )
        code = ord(encoded[index])
        if code < _OFFSET or code > _MAX_CHAR:
            raise PolylineDecodeError(
                f"invalid polyline character {encoded[index]!r} at {index}", position=index
            )
        b = code - _OFFSET
        index += 1
        result |= (b & _CHUNK_MASK) << shift
        shift += 5
        if not b & _CONTINUATION:
            break

    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def compute_bounds(coords: Iterable[Coordinate]) -> BoundingBox:
    coords = list(coords)
    if not coords:
        return BoundingBox.empty()
    lats = [c.lat for c in coords]
    lons = [c.lon for c in coords]
    return BoundingBox(north=max(lats), south=min(lats), east=max(lons), west=min(lons))


def decode_polyline(encoded: str, precision: int = 5) -> DecodedPath:
    """
    Decode an encoded polyline into ordered coordinates plus their bounds.

    Parameters
    ----------
    encoded : str
        Polyline string from the flight-plan service.  ``""`` is valid and
        yields an empty path with the empty-sentinel bounds.
    precision : int
        Decimal digits encoded per value (5 for the flight-plan service).

    Raises
    ------
    PolylineDecodeError
        On characters outside the alphabet, a truncated component, or a
        latitude without its longitude.  No partial path is returned.
    """
    factor = 10 ** precision
    coords: List[Coordinate] = []
    lat = lng = 0
    index = 0

    while index < len(encoded):
        lat_start = index
        d_lat, index = _read_value(encoded, index)
        if index >= len(encoded):
            raise PolylineDecodeError(
                f"latitude at {lat_start} has no longitude", position=lat_start
            )
        d_lng, index = _read_value(encoded, index)

        # accumulate in integer units so repeated deltas never drift
        lat += d_lat
        lng += d_lng
        coords.append(Coordinate(round(lat / factor, precision), round(lng / factor, precision)))

    return DecodedPath(coordinates=tuple(coords), bounds=compute_bounds(coords))
