from __future__ import annotations

import asyncio
import logging
import random

import pytest
from bs4 import BeautifulSoup

from rental_crawler.utils.delay import random_delay
from rental_crawler.utils.loader import load_symbol
from rental_crawler.utils.logging import setup_logging
from rental_crawler.utils.parsing import links_from_soup, normalize_url, unique_in_order


def test_normalize_url_strips_fragment_and_whitespace():
    assert normalize_url("  https://www.airbnb.com/rooms/1?adults=2#photos \n") == \
        "https://www.airbnb.com/rooms/1?adults=2"


def test_unique_in_order_drops_blanks_and_repeats():
    assert unique_in_order(["b", "", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_links_from_soup_skips_non_navigational_hrefs():
    soup = BeautifulSoup(
        '<a href="/rooms/1">1</a><a href="javascript:void(0)">x</a><a href="#top">t</a>'
        '<a href="mailto:host@example.com">m</a><a href="/rooms/2">2</a><a href="/rooms/1#photos">1</a>',
        "html.parser",
    )

    assert links_from_soup(soup, "https://www.airbnb.com/s/x/homes") == [
        "https://www.airbnb.com/rooms/1",
        "https://www.airbnb.com/rooms/2",
    ]


def test_load_symbol_accepts_both_forms():
    from rental_crawler.export.json_exporter import JSONExporter

    assert load_symbol("rental_crawler.export.json_exporter:JSONExporter") is JSONExporter
    assert load_symbol("rental_crawler.export.json_exporter.JSONExporter") is JSONExporter


def test_load_symbol_errors():
    with pytest.raises(ValueError):
        load_symbol("JSONExporter")
    with pytest.raises(ImportError):
        load_symbol("rental_crawler.export.json_exporter:Missing")


def test_random_delay_within_bounds(sleeps):
    seconds = asyncio.run(random_delay(3, 7, sleep=sleeps, rng=random.Random(5)))

    assert 3 <= seconds <= 7
    assert sleeps.calls == [seconds]


def test_zero_delay_does_not_sleep(sleeps):
    assert asyncio.run(random_delay(0, 0, sleep=sleeps)) == 0
    assert sleeps.calls == []


def test_setup_logging_quiets_browser_driver_logs(monkeypatch):
    monkeypatch.setenv("RENTAL_CRAWLER_LOG_LEVEL", "info")
    setup_logging()
    assert logging.getLogger("playwright").level == logging.WARNING
    assert logging.getLogger("asyncio").level == logging.WARNING
