from __future__ import annotations

import asyncio
import random

import pytest

from rental_crawler.engines.browser_engine import USER_AGENTS
from rental_crawler.engines.session import Session
from rental_crawler.errors import (
    ExtractionFailure,
    LaunchFailure,
    NavigationFailure,
    NoSectionsFound,
    PaginationFailure,
    SectionLoadFailure,
)

from fakes import BASE_URL, ScriptedBackend, demo_site, homepage_html, property_html, section_html

SECTION = "https://www.airbnb.com/s/section-0/homes"
ROOM = "https://www.airbnb.com/rooms/11"


def run(coro):
    return asyncio.run(coro)


def open_session(config, backend, sleeps):
    return Session.open(config, backend, sleep=sleeps, rng=random.Random(1))


# ---- Lifecycle --------------------------------------------------------------

def test_open_launches_with_stealth_profile(config, sleeps):
    backend = ScriptedBackend()
    config.headless = False

    session = run(open_session(config, backend, sleeps))

    assert backend.profile is session.profile
    assert session.profile.user_agent in USER_AGENTS
    assert session.profile.headless is False


def test_launch_failure_closes_backend(config, sleeps):
    backend = ScriptedBackend(launch_error=RuntimeError("Executable doesn't exist"))

    with pytest.raises(LaunchFailure) as info:
        run(open_session(config, backend, sleeps))

    assert info.value.stage == "browser launch"
    assert backend.close_calls == 1


def test_close_is_idempotent(config, sleeps):
    backend = ScriptedBackend()

    async def scenario():
        async with await open_session(config, backend, sleeps) as session:
            await session.close()
        await session.close()

    run(scenario())
    assert backend.close_calls == 1


# ---- Sections ---------------------------------------------------------------

def test_list_sections_in_page_order(config, sleeps):
    config.scroll_pause = 1.5
    backend = ScriptedBackend(demo_site([["/rooms/1"], ["/rooms/2"], ["/rooms/3"]]))

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_sections()

    sections = run(scenario())

    assert sections == [f"https://www.airbnb.com/s/section-{i}/homes" for i in range(3)]
    assert backend.scrolls == [800, 1600]
    assert sleeps.calls == [1.5, 1.5, 1.5]
    assert backend.open_tabs == 0


def test_homepage_without_sections_is_fatal(config, sleeps):
    backend = ScriptedBackend({BASE_URL: homepage_html([])})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_sections()

    with pytest.raises(NoSectionsFound):
        run(scenario())
    assert backend.open_tabs == 0


def test_homepage_navigation_error_is_fatal(config, sleeps):
    backend = ScriptedBackend(demo_site([["/rooms/1"]]), failures={BASE_URL: 1})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_sections()

    with pytest.raises(NoSectionsFound) as info:
        run(scenario())
    assert info.value.url == BASE_URL
    assert backend.open_tabs == 0


# ---- Property URLs ----------------------------------------------------------

def test_property_urls_merge_both_result_pages(config, sleeps):
    backend = ScriptedBackend(
        {SECTION: section_html(["/rooms/1", "/rooms/2", "/rooms/3", "/rooms/4"], next_link=True)},
        page_two={SECTION: section_html(["/rooms/3", "/rooms/5", "/rooms/6", "/rooms/7"])},
    )

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    urls = run(scenario())

    assert urls == [f"https://www.airbnb.com/rooms/{i}" for i in (1, 2, 3, 5, 6)]
    assert backend.clicks == ['a[aria-label="Next"]']
    assert backend.open_tabs == 0


def test_property_urls_use_page_one_without_next_control(config, sleeps):
    backend = ScriptedBackend({SECTION: section_html(["/rooms/1", "/rooms/2"])})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    urls = run(scenario())

    assert urls == ["https://www.airbnb.com/rooms/1", "https://www.airbnb.com/rooms/2"]
    assert len(backend.clicks) == 4


def test_page_two_that_never_loads_fails_the_section(config, sleeps):
    backend = ScriptedBackend(
        {SECTION: section_html(["/rooms/1"], next_link=True)},
        page_two={SECTION: None},
    )

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    with pytest.raises(PaginationFailure) as info:
        run(scenario())
    assert info.value.url == SECTION
    assert backend.open_tabs == 0


def test_deadline_after_next_click_is_pagination_failure(config, sleeps):
    config.request_timeout = 0.05
    backend = ScriptedBackend(
        {SECTION: section_html(["/rooms/1"], next_link=True)},
        page_two={SECTION: section_html(["/rooms/2"])},
        hang_page_two={SECTION},
    )

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    with pytest.raises(PaginationFailure) as info:
        run(scenario())
    assert info.value.timed_out
    assert info.value.url == SECTION
    assert backend.open_tabs == 0


def test_deadline_before_next_click_is_section_load_failure(config, sleeps):
    config.request_timeout = 0.05
    backend = ScriptedBackend({SECTION: section_html(["/rooms/1"])}, hang={SECTION})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    with pytest.raises(SectionLoadFailure) as info:
        run(scenario())
    assert info.value.timed_out
    assert backend.open_tabs == 0


def test_section_without_cards_fails_to_load(config, sleeps):
    backend = ScriptedBackend({})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.list_property_urls(SECTION)

    with pytest.raises(SectionLoadFailure):
        run(scenario())
    assert backend.open_tabs == 0


# ---- Property extraction ----------------------------------------------------

def test_extract_property_reads_listing(config, sleeps):
    backend = ScriptedBackend({ROOM: property_html("Harbour view flat", price="$210", rating="4.6")})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.extract_property(ROOM)

    listing = run(scenario())

    assert listing.title == "Harbour view flat"
    assert listing.price == 210.0
    assert listing.rating == 4.6
    assert listing.url == ROOM
    assert backend.open_tabs == 0


def test_extract_property_timeout_is_navigation_failure(config, sleeps):
    config.request_timeout = 0.05
    backend = ScriptedBackend({ROOM: property_html("Slow")}, hang={ROOM})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.extract_property(ROOM)

    with pytest.raises(NavigationFailure) as info:
        run(scenario())
    assert info.value.timed_out
    assert info.value.url == ROOM
    assert backend.open_tabs == 0


def test_extract_property_navigation_error(config, sleeps):
    backend = ScriptedBackend({ROOM: property_html("Flaky")}, failures={ROOM: 1})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        with pytest.raises(NavigationFailure) as info:
            await session.extract_property(ROOM)
        assert not info.value.timed_out
        # The injected failure is used up, so the next visit succeeds.
        return await session.extract_property(ROOM)

    assert run(scenario()).title == "Flaky"
    assert backend.open_tabs == 0


def test_unreadable_snapshot_is_extraction_failure(config, sleeps):
    backend = ScriptedBackend({ROOM: property_html("Broken")}, broken_snapshots={ROOM})

    async def scenario():
        session = await open_session(config, backend, sleeps)
        return await session.extract_property(ROOM)

    with pytest.raises(ExtractionFailure):
        run(scenario())
    assert backend.open_tabs == 0
