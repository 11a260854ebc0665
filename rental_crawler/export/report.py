"""
Market summary over a cleaned set of listings.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..adapters.base import Listing, clean_listings

TOP_RATED_LIMIT = 5


@dataclass
class MarketReport:
    total_listings: int = 0
    platform_counts: Dict[str, int] = field(default_factory=dict)
    average_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    most_expensive: Optional[Listing] = None
    listings_by_location: Dict[str, int] = field(default_factory=dict)
    top_rated: List[Listing] = field(default_factory=list)


def normalize_location(location: str) -> str:
    location = location.strip()
    return location or "Unknown"


def build_report(listings: Iterable[Listing]) -> MarketReport:
    """
    Prices of zero count as unknown and are left out of the price figures;
    likewise unrated listings never reach the top-rated table.
    """
    cleaned = clean_listings(listings)
    report = MarketReport(total_listings=len(cleaned))
    if not cleaned:
        return report

    report.platform_counts = dict(Counter(l.platform for l in cleaned))
    report.listings_by_location = dict(sorted(Counter(normalize_location(l.location) for l in cleaned).items()))

    priced = [l for l in cleaned if l.price > 0]
    if priced:
        prices = [l.price for l in priced]
        report.average_price = sum(prices) / len(prices)
        report.min_price = min(prices)
        report.max_price = max(prices)
        report.most_expensive = max(priced, key=lambda l: l.price)

    rated = [l for l in cleaned if l.rating > 0]
    rated.sort(key=lambda l: (l.rating, l.price), reverse=True)
    report.top_rated = rated[:TOP_RATED_LIMIT]
    return report


def _shorten(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def format_report(report: MarketReport) -> str:
    lines = [
        "Vacation Rental Market Insights",
        "-" * 62,
        f"{'Total listings scraped':<30} {report.total_listings}",
    ]
    for platform, count in sorted(report.platform_counts.items()):
        lines.append(f"{platform.capitalize() + ' listings':<30} {count}")
    lines += [
        f"{'Average price':<30} {report.average_price:.2f}",
        f"{'Minimum price':<30} {report.min_price:.2f}",
        f"{'Maximum price':<30} {report.max_price:.2f}",
    ]

    if report.most_expensive is not None:
        top = report.most_expensive
        lines += [
            "",
            "Most expensive property",
            "-" * 62,
            f"{'Title':<30} {top.title}",
            f"{'Price':<30} {top.price:.2f}",
            f"{'Location':<30} {normalize_location(top.location)}",
        ]

    lines += ["", f"{'Listings per location':<46} Count", "-" * 62]
    for location, count in report.listings_by_location.items():
        lines.append(f"{_shorten(location, 44):<46} {count}")

    lines += ["", f"{'#':<4} {'Top rated properties':<46} Rating", "-" * 62]
    for i, listing in enumerate(report.top_rated, start=1):
        lines.append(f"{i:<4} {_shorten(listing.title, 44):<46} {listing.rating:.2f}")
    return "\n".join(lines)
