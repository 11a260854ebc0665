from __future__ import annotations

import json
from typing import List
from pathlib import Path

from ..adapters.base import Listing


class JSONExporter:
    def export(self, listings: List[Listing], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([listing.to_dict() for listing in listings], f, indent=2, ensure_ascii=False)
