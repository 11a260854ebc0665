"""
Field normalization for scraped listing values.

Every function here is pure and total: missing or malformed input resolves to
an empty string or ``0.0``, never an exception.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

ELLIPSIS = "..."

_CURRENCY_SYMBOLS = "$€£¥₹₩₱฿"
_CURRENCY_CODES = ("RM", "USD", "EUR", "GBP", "AUD", "CAD", "SGD", "MYR", "JPY", "INR")

PRICE_TOKEN = re.compile(
    r"(?:[{symbols}]|\b(?:{codes}))\s?\d[\d,]*(?:\.\d+)?".format(
        symbols=re.escape(_CURRENCY_SYMBOLS),
        codes="|".join(_CURRENCY_CODES),
    )
)
_CURRENCY_STRIP = re.compile(
    r"[{symbols},]|\b(?:{codes})".format(
        symbols=re.escape(_CURRENCY_SYMBOLS),
        codes="|".join(_CURRENCY_CODES),
    )
)
_LEADING_NUMBER = re.compile(r"^\d*\.?\d+")
_DECIMAL_TOKEN = re.compile(r"\d+(?:\.\d+)?")
_LOCATION = re.compile(r"\bin\s+(.+?)\s*$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def first_non_empty(candidates: Iterable[Optional[str]]) -> str:
    """Return the first candidate with visible text, trimmed."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return ""


def clean_text(text: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def find_price_text(candidates: Iterable[Optional[str]]) -> str:
    """
    Return the first currency-prefixed number found across candidates,
    e.g. ``"$1,234"`` out of ``"$1,234 per night, originally $1,400"``.
    """
    for candidate in candidates:
        if not candidate:
            continue
        match = PRICE_TOKEN.search(candidate)
        if match:
            return match.group(0)
    return ""


def parse_price(raw: Optional[str]) -> float:
    """
    Strip currency markers and thousands separators, then parse the leading
    number of the first remaining word.

    >>> parse_price("$1,234.50 for 3 nights")
    1234.5
    >>> parse_price("RM 99")
    99.0
    """
    cleaned = _CURRENCY_STRIP.sub("", raw or "")
    parts = cleaned.split()
    if not parts:
        return 0.0
    match = _LEADING_NUMBER.match(parts[0])
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def find_rating_text(candidates: Iterable[Optional[str]]) -> str:
    for candidate in candidates:
        if not candidate:
            continue
        match = _DECIMAL_TOKEN.search(candidate)
        if match:
            return match.group(0)
    return ""


def parse_rating(raw: Optional[str]) -> float:
    """Parse a star rating; anything outside [0, 5] is treated as missing."""
    match = _DECIMAL_TOKEN.search(raw or "")
    if not match:
        return 0.0
    value = float(match.group(0))
    if value < 0 or value > 5:
        return 0.0
    return value


def parse_location(heading: Optional[str]) -> str:
    """``"Entire cabin in Asheville, North Carolina"`` -> ``"Asheville, North Carolina"``."""
    text = clean_text(heading)
    match = _LOCATION.search(text)
    if match:
        return match.group(1)
    return text


def truncate_text(text: Optional[str], max_chars: int, marker: str = ELLIPSIS) -> str:
    """
    Cut ``text`` to ``max_chars`` characters and append ``marker``.

    Slicing works on code points, so multi-byte characters are never split.
    Re-applying to an already truncated value returns it unchanged.
    """
    text = text or ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker
