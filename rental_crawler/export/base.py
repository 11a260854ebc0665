from __future__ import annotations

from typing import List, Protocol

from ..adapters.base import Listing


class Exporter(Protocol):
    def export(self, listings: List[Listing], path: str) -> None:
        ...
