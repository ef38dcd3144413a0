"""Redis key naming conventions for the route-overlay cache layer."""
from __future__ import annotations

import hashlib

_PREFIX = "ro"


def navaid(ident: str) -> str:
    """Key for the first navaid-search match of an identifier."""
    return f"{_PREFIX}:navaid:{ident.strip().upper()}"


def flightplan_decode(route: str) -> str:
    """Key for a decoded flight plan (route-string based)."""
    normalized = " ".join(route.split()).upper()
    h = hashlib.sha256(normalized.encode()).hexdigest()[:16]
    return f"{_PREFIX}:decode:{h}"
