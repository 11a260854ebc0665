from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterable, List, Protocol, Sequence


class SiteAdapter(Protocol):
    """
    Interface for site-specific parsing logic.
    The session owns the browser; adapters turn DOM snapshots into data.
    """

    name: str
    domains: List[str]  # e.g. ["airbnb.com", "www.airbnb.com"]
    #: Element that must be visible before a section page is read.
    listing_marker: str
    #: Element that must be visible before a property page is read.
    title_selector: str
    #: Candidate "next page" controls, tried in order.
    next_page_selectors: Sequence[str]

    def matches(self, url: str) -> bool:
        """Return True if this adapter should handle the given URL."""
        ...

    def parse_sections(self, url: str, html: str) -> List[str]:
        """Section URLs found on the homepage, in first-seen order."""
        ...

    def parse_listing_links(self, url: str, html: str, limit: int) -> List[str]:
        """Up to ``limit`` property URLs from one results page."""
        ...

    def parse_listing(self, url: str, html: str, *, description_max_chars: int) -> "Listing":
        """
        Build a Listing from a property page. Never raises: missing fields
        resolve to empty strings or zero.
        """
        ...


@dataclass
class Listing:
    """Structured data extracted from one property page."""

    platform: str
    title: str
    url: str
    price: float = 0.0
    raw_price: str = ""
    location: str = ""
    rating: float = 0.0
    description: str = ""

    def is_valid(self) -> bool:
        return bool(self.title.strip()) and bool(self.url.strip())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clean_listings(listings: Iterable[Listing]) -> List[Listing]:
    """
    Trim text fields, drop listings without a title or URL, and keep only the
    first listing per URL.
    """
    seen = set()
    cleaned: List[Listing] = []
    for listing in listings:
        listing = replace(
            listing,
            title=listing.title.strip(),
            url=listing.url.strip(),
            platform=listing.platform.strip().lower(),
            location=listing.location.strip(),
        )
        if not listing.is_valid() or listing.url in seen:
            continue
        seen.add(listing.url)
        cleaned.append(listing)
    return cleaned
