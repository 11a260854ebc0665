from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List
from abc import ABC, abstractmethod

from ..adapters.base import Listing


@dataclass
class CrawlReport:
    listings: List[Listing] = field(default_factory=list)
    failed_jobs: int = 0
    skipped_jobs: int = 0
    sections_found: int = 0
    sections_processed: int = 0
    sections_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listings": [listing.to_dict() for listing in self.listings],
            "failed_jobs": self.failed_jobs,
            "skipped_jobs": self.skipped_jobs,
            "sections_found": self.sections_found,
            "sections_processed": self.sections_processed,
            "sections_skipped": self.sections_skipped,
        }


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
