from __future__ import annotations

import logging
from typing import List
from importlib import metadata

from .base import SiteAdapter
from .airbnb import AirbnbAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Registry for available site adapters.
    Supports built-ins, config-defined dotted classes, and entry-point plugins.
    """
    def __init__(self) -> None:
        self._adapters: List[SiteAdapter] = [AirbnbAdapter()]

    # ---- Introspection / Management ----

    def register(self, adapter: SiteAdapter) -> None:
        self._adapters.append(adapter)

    @property
    def adapters(self) -> List[SiteAdapter]:
        return list(self._adapters)

    def match(self, url: str) -> SiteAdapter:
        # Later registrations override built-ins for the domains they claim.
        for a in reversed(self._adapters[1:]):
            if a.matches(url):
                return a
        return self._adapters[0]  # airbnb

    # ---- Discovery ----

    def discover_entry_points(self, group: str = "rental_crawler.adapters") -> int:
        """
        Discover third-party adapters installed as entry points.
        Returns count of newly registered adapters.
        """
        added = 0
        for ep in metadata.entry_points(group=group):
            try:
                adapter_cls = ep.load()
                self.register(adapter_cls())
            except Exception as exc:
                logger.warning("Failed to load adapter plugin %s: %r", ep.name, exc)
                continue
            added += 1
        return added
