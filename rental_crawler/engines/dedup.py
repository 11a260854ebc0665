from __future__ import annotations

import threading
from typing import Set


class DedupRegistry:
    """
    Set of property URLs currently claimed or already scraped.

    A URL is reserved before any network work starts, released if its
    extraction finally fails, and kept once it succeeds. Reservation is one
    locked check-and-insert, so it holds for threads and asyncio tasks alike.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _key(url: str) -> str:
        return url.strip()

    def try_reserve(self, url: str) -> bool:
        key = self._key(url)
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def release(self, url: str) -> None:
        with self._lock:
            self._seen.discard(self._key(url))

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
