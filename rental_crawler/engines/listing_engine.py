from __future__ import annotations

import asyncio
import logging
import random
from typing import List, Optional

from .base import CrawlEngine, CrawlReport
from .browser_engine import BrowserBackend
from .dedup import DedupRegistry
from .session import Session
from .worker_pool import WorkerPool
from ..adapters.base import Listing, clean_listings
from ..adapters.registry import AdapterRegistry
from ..config import CrawlConfig
from ..errors import SectionError
from ..utils.delay import Sleep
from ..utils.loader import load_symbol

logger = logging.getLogger(__name__)


class ListingCrawlEngine(CrawlEngine):
    """
    Sequential section driver.
    - Session owns the browser and tabs.
    - Adapters own page parsing.
    - One worker pool per section; sections never overlap.
    """
    def __init__(
        self,
        config: CrawlConfig,
        backend: Optional[BrowserBackend] = None,
        adapters: Optional[AdapterRegistry] = None,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.backend = backend if backend is not None else load_symbol(config.backend)()
        if adapters is None:
            adapters = AdapterRegistry()
            adapters.discover_entry_points()
        self.adapters = adapters
        self.registry = DedupRegistry()
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def crawl(self) -> CrawlReport:
        cfg = self.config
        logger.info("Scraper starting | sections=%d workers=%d delay=%.1f-%.1fs",
                    cfg.max_sections, cfg.workers_per_section, cfg.min_delay, cfg.max_delay)

        # LaunchFailure and NoSectionsFound propagate: nothing useful can follow them.
        session = await Session.open(
            cfg,
            self.backend,
            adapter=self.adapters.match(cfg.base_url),
            rng=self._rng,
            sleep=self._sleep,
        )
        async with session:
            sections = await session.list_sections()
            report = CrawlReport(sections_found=len(sections))

            target = cfg.max_sections
            if len(sections) < target:
                logger.warning("Only %d sections found, need %d", len(sections), target)
                target = len(sections)
            logger.info("Processing up to %d sections", target)

            pool = WorkerPool(session, self.registry, cfg, sleep=self._sleep, rng=self._rng)
            collected: List[Listing] = []
            for number, section_url in enumerate(sections[:target], start=1):
                try:
                    urls = await session.list_property_urls(section_url)
                except SectionError as exc:
                    logger.error("Section %d failed: %s", number, exc)
                    report.sections_skipped += 1
                    continue

                report.sections_processed += 1
                if not urls:
                    logger.warning("Section %d has no property URLs", number)
                    continue

                logger.info("Scraping property details for section %d", number)
                result = await pool.run(urls)
                collected.extend(result.listings)
                report.failed_jobs += result.failed
                report.skipped_jobs += result.skipped

        report.listings = clean_listings(collected)
        if report.listings:
            logger.info("Total listings scraped from all sections: %d", len(report.listings))
        else:
            logger.warning("No listings scraped from any section")
        return report


async def run_crawl(
    config: CrawlConfig,
    backend: Optional[BrowserBackend] = None,
    adapters: Optional[AdapterRegistry] = None,
) -> CrawlReport:
    """Run one full crawl. Raises FatalCrawlError when setup fails."""
    engine = ListingCrawlEngine(config, backend=backend, adapters=adapters)
    return await engine.crawl()
