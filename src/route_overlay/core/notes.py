from __future__ import annotations

from typing import List, Optional, Set

REQUESTED_PREFIX = "Requested:"
UNMATCHED_PREFIX = "Unmatched points:"


def _line_after(notes: str, prefix: str) -> Optional[str]:
    for line in notes.split("\n"):
        line = line.rstrip("\r")
        if line.startswith(prefix):
            return line[len(prefix):]
    return None


def parse_unmatched(notes: Optional[str]) -> Set[str]:
    """Upper-cased identifiers the decode service could not place."""
    if not notes:
        return set()
    rest = _line_after(notes, UNMATCHED_PREFIX)
    if rest is None:
        return set()
    return {tok.upper() for tok in rest.split()}


def parse_waypoints(notes: Optional[str]) -> List[str]:
    """
    Ordered waypoint identifiers from the ``Requested:`` line of the notes.

    Duplicates are kept.  Identifiers listed on the ``Unmatched points:``
    line are dropped, compared case-insensitively.
    """
    if not notes:
        return []
    rest = _line_after(notes, REQUESTED_PREFIX)
    if rest is None:
        return []

    excluded = parse_unmatched(notes)
    return [wp for wp in rest.split() if wp.upper() not in excluded]
