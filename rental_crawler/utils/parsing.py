from __future__ import annotations

from typing import Iterable, List
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup


def normalize_url(url: str) -> str:
    """
    Normalize URL by trimming whitespace and removing fragments.
    """
    parts = list(urlparse(url.strip()))
    parts[5] = ""  # strip fragment
    return urlunparse(parts)


def unique_in_order(items: Iterable[str]) -> List[str]:
    """De-duplicate while keeping first-seen order; empty strings are dropped."""
    seen = set()
    out: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def links_from_soup(
    soup: BeautifulSoup,
    base_url: str,
    selector: str = "a[href]",
) -> List[str]:
    hrefs: List[str] = []
    for a in soup.select(selector):
        href = a.get("href")
        if not href or href.startswith(("javascript:", "mailto:", "#")):
            continue
        hrefs.append(normalize_url(urljoin(base_url, href)))
    return unique_in_order(hrefs)
