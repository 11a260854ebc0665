from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Type, TypeVar

from .browser_engine import BrowserBackend, BrowserTab, StealthProfile
from ..adapters.airbnb import AirbnbAdapter
from ..adapters.base import Listing, SiteAdapter
from ..config import CrawlConfig
from ..errors import (
    CrawlError,
    ExtractionFailure,
    LaunchFailure,
    NavigationFailure,
    NoSectionsFound,
    PaginationFailure,
    SectionLoadFailure,
)
from ..utils.delay import Sleep
from ..utils.parsing import unique_in_order

logger = logging.getLogger(__name__)

T = TypeVar("T")

SNAPSHOT_SCRIPT = "() => document.documentElement.outerHTML"
SCROLL_SCRIPT = "(y) => window.scrollTo(0, y)"
CLICK_SCRIPT = """(selector) => {
    const el = document.querySelector(selector);
    if (!el || el.disabled || el.getAttribute('aria-disabled') === 'true') return false;
    el.click();
    return true;
}"""


def _is_timeout(exc: BaseException) -> bool:
    # Playwright raises its own TimeoutError type, unrelated to asyncio's.
    return isinstance(exc, asyncio.TimeoutError) or type(exc).__name__ == "TimeoutError"


class Session:
    """
    Browser-backed primitives for one crawl run.

    The session owns the backend's browser process; every operation opens its
    own tab and closes it on the way out, whatever the outcome.
    """

    def __init__(
        self,
        config: CrawlConfig,
        backend: BrowserBackend,
        profile: StealthProfile,
        adapter: Optional[SiteAdapter] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.backend = backend
        self.profile = profile
        self.adapter: SiteAdapter = adapter or AirbnbAdapter()
        self._sleep = sleep
        self._closed = False

    @classmethod
    async def open(
        cls,
        config: CrawlConfig,
        backend: BrowserBackend,
        *,
        adapter: Optional[SiteAdapter] = None,
        rng: Optional[random.Random] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> "Session":
        profile = StealthProfile.choose(headless=config.headless, rng=rng)
        logger.info("Launching browser (headless=%s, ua=%s)", profile.headless, profile.user_agent)
        try:
            await backend.launch(profile)
        except Exception as exc:
            try:
                await backend.close()
            except Exception as close_exc:
                logger.debug("Cleanup after failed launch raised %r", close_exc)
            raise LaunchFailure(f"could not launch browser: {exc}") from exc
        logger.info("Browser ready")
        return cls(config, backend, profile, adapter, sleep=sleep)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Closing browser...")
        await self.backend.close()

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ---- Tab plumbing -------------------------------------------------------

    @asynccontextmanager
    async def _tab(self) -> AsyncIterator[BrowserTab]:
        tab = await self.backend.new_tab()
        try:
            yield tab
        finally:
            try:
                await tab.close()
            except Exception as exc:
                logger.debug("Closing tab raised %r", exc)

    async def _bounded(
        self,
        work: Callable[[], Awaitable[T]],
        *,
        timeout: float,
        failure: Type[CrawlError],
        url: str,
    ) -> T:
        """Run ``work`` under a deadline, mapping any failure onto ``failure``."""
        try:
            return await asyncio.wait_for(work(), timeout)
        except CrawlError:
            raise
        except Exception as exc:
            if _is_timeout(exc):
                raise failure(f"timed out after {timeout:g}s on {url}", url=url, timed_out=True) from exc
            raise failure(f"{type(exc).__name__}: {exc} on {url}", url=url) from exc

    async def _snapshot(self, tab: BrowserTab) -> str:
        html = await tab.evaluate(SNAPSHOT_SCRIPT)
        if not isinstance(html, str):
            raise TypeError(f"snapshot returned {type(html).__name__}")
        return html

    # ---- Operations ---------------------------------------------------------

    async def list_sections(self) -> List[str]:
        """Section URLs from the homepage, in the order they appear."""
        cfg = self.config
        logger.info("Opening homepage to collect section URLs...")

        async def work() -> List[str]:
            async with self._tab() as tab:
                await tab.goto(cfg.base_url, timeout=cfg.homepage_timeout)
                # Sections render lazily as the page scrolls.
                await self._sleep(cfg.scroll_pause)
                for y in cfg.scroll_steps:
                    await tab.evaluate(SCROLL_SCRIPT, y)
                    await self._sleep(cfg.scroll_pause)
                html = await self._snapshot(tab)
            return self.adapter.parse_sections(cfg.base_url, html)

        sections = await self._bounded(work, timeout=cfg.homepage_timeout,
                                       failure=NoSectionsFound, url=cfg.base_url)
        if not sections:
            raise NoSectionsFound(f"no section URLs found on {cfg.base_url}", url=cfg.base_url)
        logger.info("Found %d section URLs", len(sections))
        return sections

    async def list_property_urls(self, section_url: str) -> List[str]:
        """Property URLs from the first two result pages of one section."""
        cfg = self.config
        limit = cfg.listings_per_page
        marker = self.adapter.listing_marker
        logger.info("Getting property URLs from section: %s", section_url[:80])
        clicked = False

        async def work() -> List[str]:
            nonlocal clicked
            async with self._tab() as tab:
                await tab.goto(section_url, timeout=cfg.request_timeout)
                await tab.wait_for_visible(marker, timeout=cfg.request_timeout)
                await self._sleep(cfg.settle_delay)
                urls = self.adapter.parse_listing_links(section_url, await self._snapshot(tab), limit)

                if not await self._click_next(tab):
                    logger.warning("No next-page control on %s; using page one only", section_url[:80])
                    return urls
                clicked = True

                try:
                    await tab.wait_for_visible(marker, timeout=cfg.request_timeout)
                    await self._sleep(cfg.settle_delay)
                    more = self.adapter.parse_listing_links(section_url, await self._snapshot(tab), limit)
                except Exception as exc:
                    raise PaginationFailure(
                        f"second results page did not load for {section_url}: {exc}",
                        url=section_url,
                        timed_out=_is_timeout(exc),
                    ) from exc
                return unique_in_order([*urls, *more])

        try:
            urls = await self._bounded(work, timeout=cfg.request_timeout,
                                       failure=SectionLoadFailure, url=section_url)
        except SectionLoadFailure as exc:
            # The deadline can expire while page two is loading.
            if not clicked:
                raise
            raise PaginationFailure(
                f"second results page did not load for {section_url}: {exc}",
                url=section_url,
                timed_out=exc.timed_out,
            ) from exc
        logger.info("Got %d property URLs from section", len(urls))
        return urls

    async def _click_next(self, tab: BrowserTab) -> bool:
        for selector in self.adapter.next_page_selectors:
            if await tab.evaluate(CLICK_SCRIPT, selector):
                logger.debug("Advanced to page two via %s", selector)
                return True
        return False

    async def extract_property(self, property_url: str) -> Listing:
        """Open one property page and read its listing fields."""
        cfg = self.config
        logger.info("Visiting property: %s", property_url[:80])

        async def work() -> Listing:
            async with self._tab() as tab:
                await tab.goto(property_url, timeout=cfg.request_timeout)
                await tab.wait_for_visible(self.adapter.title_selector, timeout=cfg.request_timeout)
                await self._sleep(cfg.settle_delay)
                try:
                    html = await self._snapshot(tab)
                except Exception as exc:
                    raise ExtractionFailure(
                        f"could not read page content of {property_url}: {exc}",
                        url=property_url,
                        timed_out=_is_timeout(exc),
                    ) from exc
            return self.adapter.parse_listing(
                property_url, html, description_max_chars=cfg.description_max_chars
            )

        return await self._bounded(work, timeout=cfg.request_timeout,
                                   failure=NavigationFailure, url=property_url)
