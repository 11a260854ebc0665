from __future__ import annotations

from typing import List

import pytest

from rental_crawler.config import CrawlConfig

from fakes import BASE_URL


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records durations instead of waiting."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def config(tmp_path) -> CrawlConfig:
    """Config with every pause at zero so tests never wait on wall-clock time."""
    return CrawlConfig(
        base_url=BASE_URL,
        max_sections=5,
        workers_per_section=2,
        request_timeout=5.0,
        homepage_timeout=5.0,
        min_delay=0.0,
        max_delay=0.0,
        max_retries=2,
        listings_per_page=3,
        settle_delay=0.0,
        scroll_pause=0.0,
        output_path=str(tmp_path / "listings.json"),
    )
