from __future__ import annotations

import csv
from typing import List
from pathlib import Path

from ..adapters.base import Listing


class CSVExporter:
    """
    Writes one row per listing.
    """

    _headers = [
        "platform",
        "title",
        "price",
        "raw_price",
        "location",
        "rating",
        "url",
        "description",
    ]

    def export(self, listings: List[Listing], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for listing in listings:
                w.writerow(
                    [
                        listing.platform,
                        listing.title,
                        f"{listing.price:.2f}",
                        listing.raw_price,
                        listing.location,
                        f"{listing.rating:.2f}",
                        listing.url,
                        listing.description,
                    ]
                )
