from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from .base import Listing
from ..utils.fields import (
    PRICE_TOKEN,
    clean_text,
    find_price_text,
    find_rating_text,
    first_non_empty,
    parse_location,
    parse_price,
    parse_rating,
    truncate_text,
)
from ..utils.parsing import links_from_soup, normalize_url, unique_in_order


@dataclass(frozen=True)
class FieldStrategy:
    """
    One way of reading a raw value off a page.

    ``selector`` picks candidate elements; ``attribute`` reads an attribute
    instead of the element text; ``pattern`` keeps only the first element whose
    value matches and narrows the value to the match.
    """
    name: str
    selector: str
    attribute: Optional[str] = None
    pattern: Optional[Pattern[str]] = None


# Ordered from most to least reliable; the first usable value wins.
PRICE_STRATEGIES = (
    # Labels without a currency amount (date pickers, "3 nights") must not take the slot.
    FieldStrategy("nightly-aria-label", "[aria-label]", attribute="aria-label",
                  pattern=re.compile(PRICE_TOKEN.pattern + r".*?\b(?i:nights?)\b", re.DOTALL)),
    FieldStrategy("book-it-price", '[data-testid="book-it-default"] span[aria-hidden="true"], '
                                   '[data-section-id="BOOK_IT_SIDEBAR"] span._11jcbg2'),
    FieldStrategy("legacy-price", ".u174bpcy"),
)

RATING_STRATEGIES = (
    FieldStrategy("host-rating-banner",
                  '[data-testid="pdp-reviews-highlight-banner-host-rating"] div[aria-hidden="true"]'),
    FieldStrategy("rated-out-of-5", "span",
                  pattern=re.compile(r"Rated\s+\d+(?:\.\d+)?\s+out of 5", re.IGNORECASE)),
    FieldStrategy("alt-rating", 'div.rmtgcc3[aria-hidden="true"]'),
)

LOCATION_STRATEGIES = (
    FieldStrategy("subtitle", "h2.hpipapi"),
    FieldStrategy("overview-heading", '[data-section-id="OVERVIEW_DEFAULT_V2"] h2, '
                                      '[data-section-id="OVERVIEW_DEFAULT"] h2'),
)

DESCRIPTION_STRATEGIES = (
    FieldStrategy("description-body", '[data-section-id="DESCRIPTION_DEFAULT"] span.l1h825yc, '
                                      '[data-plugin-in-point-id="DESCRIPTION_DEFAULT"] span.l1h825yc'),
    FieldStrategy("description-section", '[data-section-id="DESCRIPTION_DEFAULT"], '
                                         '[data-plugin-in-point-id="DESCRIPTION_DEFAULT"]'),
    FieldStrategy("legacy-summary", '[data-testid="listing-page-summary"]'),
)

SECTION_LINK_SELECTORS = (
    "h2.skp76t2 a[href]",
    'section h2 a[href^="/s/"]',
    'a[href^="/s/"][href*="/homes"]',
)

ROOM_LINK = 'a[href*="/rooms/"]'
CARD_CONTAINER = '[data-testid="card-container"], [itemprop="itemListElement"]'
# Card titles sit a few levels under the element holding the room link.
CARD_MAX_DEPTH = 6


def read_value(node: Tag, strategy: FieldStrategy) -> str:
    if strategy.attribute:
        value = node.get(strategy.attribute) or ""
        if isinstance(value, list):
            value = " ".join(value)
    else:
        value = node.get_text(" ", strip=True)
    return clean_text(value)


def collect_candidates(soup: BeautifulSoup, strategies: Sequence[FieldStrategy]) -> List[str]:
    """
    Evaluate each strategy independently and return one raw value per
    strategy, in strategy order. A strategy that finds nothing yields "".
    """
    out: List[str] = []
    for strategy in strategies:
        found = ""
        for node in soup.select(strategy.selector):
            value = read_value(node, strategy)
            if strategy.pattern is not None:
                match = strategy.pattern.search(value)
                if not match:
                    continue
                value = match.group(0)
            if value:
                found = value
                break
        out.append(found)
    return out


class AirbnbAdapter:
    """Reads Airbnb homepage sections, search result cards and room pages."""

    name = "airbnb"
    domains = ["airbnb.com", "www.airbnb.com"]
    listing_marker = '[data-testid="listing-card-title"]'
    title_selector = "h1"
    next_page_selectors = (
        'a[aria-label="Next"]',
        'button[aria-label="Next"]',
        '[data-testid="pagination-next-btn"]',
        'nav[aria-label="Search results pagination"] a:last-child',
    )

    def matches(self, url: str) -> bool:
        netloc = urlparse(url).netloc.lower()
        return netloc == "airbnb.com" or netloc.endswith(".airbnb.com") or netloc.startswith("airbnb.")

    # ---- Discovery ----------------------------------------------------------

    def parse_sections(self, url: str, html: str) -> List[str]:
        soup = BeautifulSoup(html or "", "html.parser")
        for selector in SECTION_LINK_SELECTORS:
            links = links_from_soup(soup, url, selector)
            if links:
                return links
        return []

    def parse_listing_links(self, url: str, html: str, limit: int) -> List[str]:
        soup = BeautifulSoup(html or "", "html.parser")
        links = self._links_from_cards(soup, url)
        if not links:
            links = links_from_soup(soup, url, ROOM_LINK)
        return links[:limit]

    def _links_from_cards(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        hrefs: List[str] = []
        for title in soup.select(self.listing_marker):
            anchor = self._card_link(title)
            if anchor is not None:
                hrefs.append(normalize_url(urljoin(base_url, anchor["href"])))
        return unique_in_order(hrefs)

    def _card_link(self, title: Tag) -> Optional[Tag]:
        """
        Room link belonging to the card around ``title``, or None.

        The walk never leaves the card: it stops at the card container, at an
        element holding more than one card title, or after ``CARD_MAX_DEPTH``
        levels.
        """
        for depth, ancestor in enumerate(title.parents):
            if depth >= CARD_MAX_DEPTH or isinstance(ancestor, BeautifulSoup):
                return None
            if len(ancestor.select(self.listing_marker)) > 1:
                return None
            anchor = ancestor.select_one(ROOM_LINK)
            if anchor is not None:
                return anchor
            if ancestor.css.match(CARD_CONTAINER):
                return None
        return None

    # ---- Extraction ---------------------------------------------------------

    def parse_listing(self, url: str, html: str, *, description_max_chars: int = 200) -> Listing:
        soup = BeautifulSoup(html or "", "html.parser")

        heading = soup.select_one(self.title_selector)
        title = heading.get_text(" ", strip=True) if heading else ""

        raw_price = find_price_text(collect_candidates(soup, PRICE_STRATEGIES))
        rating_text = find_rating_text(collect_candidates(soup, RATING_STRATEGIES))
        location = parse_location(first_non_empty(collect_candidates(soup, LOCATION_STRATEGIES)))
        description = truncate_text(
            clean_text(first_non_empty(collect_candidates(soup, DESCRIPTION_STRATEGIES))),
            description_max_chars,
        )

        return Listing(
            platform=self.name,
            title=clean_text(title),
            url=url.strip(),
            price=parse_price(raw_price),
            raw_price=raw_price,
            location=location,
            rating=parse_rating(rating_text),
            description=description,
        )
