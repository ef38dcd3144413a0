from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

from route_overlay.core.models import Navaid
from route_overlay.errors import LookupTransportError
from route_overlay.providers.base import NavaidLookup


class StaticNavaidLookup(NavaidLookup):
    """
    Navaid search backed by an in-memory table, so the pipeline runs
    end-to-end without the API.  Lookups are case-insensitive.

    ``fail`` lists identifiers that raise LookupTransportError, to exercise
    the degraded path.
    """

    def __init__(self, navaids: Iterable[Navaid] = (), fail: Iterable[str] = ()):
        table: Dict[str, List[Navaid]] = defaultdict(list)
        for nav in navaids:
            table[nav.ident.upper()].append(nav)
        self._table = dict(table)
        self._fail = {f.upper() for f in fail}
        self.calls: List[str] = []

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping]) -> "StaticNavaidLookup":
        """``{"BOBIG": {"lat": .., "lon": ..}, ...}``"""
        return cls(Navaid(**{**dict(m), "ident": k}) for k, m in data.items())

    @classmethod
    def from_json_file(cls, path: Path) -> "StaticNavaidLookup":
        """Accepts either a list of match objects or an ident -> match mapping."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cls.from_mapping(data)
        return cls(Navaid.model_validate(item) for item in data)

    async def search(self, ident: str) -> List[Navaid]:
        self.calls.append(ident)
        if ident.upper() in self._fail:
            raise LookupTransportError(f"simulated failure for {ident!r}")
        return list(self._table.get(ident.upper(), []))
