from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .dedup import DedupRegistry
from ..adapters.base import Listing
from ..config import CrawlConfig
from ..errors import AllAttemptsFailed
from ..utils.delay import Sleep, random_delay
from ..utils.retry import retry

logger = logging.getLogger(__name__)


class PropertyExtractor(Protocol):
    async def extract_property(self, property_url: str) -> Listing: ...


@dataclass(frozen=True)
class Outcome:
    """Result of one job: a listing, a failure, or neither for a skipped duplicate."""

    url: str
    listing: Optional[Listing] = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def skipped(self) -> bool:
        return self.listing is None and self.error is None


@dataclass
class PoolResult:
    listings: List[Listing] = field(default_factory=list)
    failed: int = 0
    skipped: int = 0
    invalid: int = 0


class WorkerPool:
    """
    Fans one section's property URLs out to a small set of concurrent workers.

    Workers are re-created for every call to :meth:`run`, capped at
    ``min(workers_per_section, len(urls))``.
    """

    def __init__(
        self,
        session: PropertyExtractor,
        registry: DedupRegistry,
        config: CrawlConfig,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.registry = registry
        self.config = config
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def run(self, urls: Sequence[str]) -> PoolResult:
        if not urls:
            return PoolResult()

        # Dispatch: every job is queued before any worker starts.
        jobs: asyncio.Queue[str] = asyncio.Queue(maxsize=len(urls))
        results: asyncio.Queue[Outcome] = asyncio.Queue(maxsize=len(urls))
        for url in urls:
            jobs.put_nowait(url)

        worker_count = min(self.config.workers_per_section, len(urls))
        logger.info("Scraping %d properties with %d workers", len(urls), worker_count)

        # Draining: workers stop once the queue is empty.
        workers = [asyncio.create_task(self._worker(i, jobs, results)) for i in range(1, worker_count + 1)]
        try:
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                task.cancel()

        return self._collect(results)

    async def _worker(self, worker_id: int, jobs: "asyncio.Queue[str]", results: "asyncio.Queue[Outcome]") -> None:
        while True:
            try:
                url = jobs.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results.put_nowait(await self._process(worker_id, url))
            finally:
                jobs.task_done()

    async def _process(self, worker_id: int, url: str) -> Outcome:
        if not self.registry.try_reserve(url):
            logger.debug("worker %d: %s already claimed, skipping", worker_id, url)
            return Outcome(url=url)

        try:
            await random_delay(self.config.min_delay, self.config.max_delay, sleep=self._sleep, rng=self._rng)
            listing = await retry(
                self.config.max_retries,
                lambda: self.session.extract_property(url),
                sleep=self._sleep,
                backoff_unit=self.config.backoff_unit,
                label=url,
            )
        except AllAttemptsFailed as exc:
            self.registry.release(url)
            logger.error("Property failed: %s", exc)
            return Outcome(url=url, error=exc)
        except asyncio.CancelledError:
            self.registry.release(url)
            raise

        logger.info("OK %s | %s %.0f | %.2f stars", listing.title[:30], listing.raw_price or "-",
                    listing.price, listing.rating)
        return Outcome(url=url, listing=listing)

    def _collect(self, results: "asyncio.Queue[Outcome]") -> PoolResult:
        # Done: outcomes arrive in completion order, not submission order.
        out = PoolResult()
        while not results.empty():
            outcome = results.get_nowait()
            if outcome.failed:
                out.failed += 1
            elif outcome.skipped:
                out.skipped += 1
            elif outcome.listing is not None and outcome.listing.is_valid():
                out.listings.append(outcome.listing)
            else:
                out.invalid += 1
        logger.info("Properties scraped: %d | Failed: %d | Skipped: %d",
                    len(out.listings), out.failed, out.skipped)
        return out
