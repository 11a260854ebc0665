# engines/browser_engine.py
from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Protocol, Tuple

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)

# Real desktop browser strings; one is picked per session.
USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
)

# Patches the properties page scripts inspect to spot automation.
HIDE_WEBDRIVER_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".rental-crawler")
    p = Path(base) / "rental-crawler"
    p.mkdir(parents=True, exist_ok=True)
    return p


def configure_browsers_path() -> str:
    """Point Playwright at a per-user browser cache unless the caller already chose one."""
    return os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(app_data_dir() / "ms-playwright"))


@dataclass(frozen=True)
class StealthProfile:
    """Launch and per-tab settings chosen once for a session's lifetime."""

    user_agent: str
    width: int = 1920
    height: int = 1080
    headless: bool = True
    locale: str = "en-US"
    init_script: str = HIDE_WEBDRIVER_JS

    @classmethod
    def choose(cls, *, headless: bool = True, rng: Optional[random.Random] = None) -> "StealthProfile":
        rng = rng or random
        return cls(user_agent=rng.choice(USER_AGENTS), headless=headless)

    def launch_args(self) -> List[str]:
        return [
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            f"--window-size={self.width},{self.height}",
        ]


class BrowserTab(Protocol):
    """One isolated browsing context with a single page."""

    async def goto(self, url: str, *, timeout: float) -> None: ...

    async def wait_for_visible(self, selector: str, *, timeout: float) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def close(self) -> None: ...


class BrowserBackend(Protocol):
    """
    Browser capability the session is built on. Implementations own the
    browser process; the session only opens and closes tabs through it.
    """

    async def launch(self, profile: StealthProfile) -> None: ...

    async def new_tab(self) -> BrowserTab: ...

    async def close(self) -> None: ...


class PlaywrightTab:
    def __init__(self, context: Any, page: Any) -> None:
        self._context = context
        self._page = page

    async def goto(self, url: str, *, timeout: float) -> None:
        await self._page.goto(url, timeout=timeout * 1000, wait_until="domcontentloaded")

    async def wait_for_visible(self, selector: str, *, timeout: float) -> None:
        await self._page.wait_for_selector(selector, state="visible", timeout=timeout * 1000)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def close(self) -> None:
        await self._context.close()


class PlaywrightBackend:
    """Chromium driven through Playwright's async API."""

    def __init__(self) -> None:
        self._playwright: Any = None
        self._browser: Any = None
        self._profile: Optional[StealthProfile] = None

    async def launch(self, profile: StealthProfile) -> None:
        configure_browsers_path()
        self._profile = profile
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=profile.headless,
            args=profile.launch_args(),
            ignore_default_args=["--enable-automation"],
        )
        logger.info("Chromium launched (headless=%s)", profile.headless)

    async def new_tab(self) -> PlaywrightTab:
        if self._browser is None or self._profile is None:
            raise RuntimeError("browser is not running")
        profile = self._profile
        context = await self._browser.new_context(
            user_agent=profile.user_agent,
            viewport={"width": profile.width, "height": profile.height},
            locale=profile.locale,
        )
        try:
            await context.add_init_script(profile.init_script)
            page = await context.new_page()
        except Exception:
            await context.close()
            raise
        return PlaywrightTab(context, page)

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        pw, self._playwright = self._playwright, None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if pw is not None:
                await pw.stop()
