from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Tuple
from pathlib import Path
import os
import json

from .version import CONFIG_SCHEMA_VERSION


DEFAULT_BACKEND = "rental_crawler.engines.browser_engine:PlaywrightBackend"
DEFAULT_EXPORTER = "rental_crawler.export.json_exporter:JSONExporter"


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    base_url: str = "https://www.airbnb.com/"
    # Sections to visit, clamped to what the homepage actually offers.
    max_sections: int = 5
    workers_per_section: int = 3
    request_timeout: float = 60.0
    homepage_timeout: float = 90.0
    # Pacing delay before each property visit, drawn uniformly from [min_delay, max_delay].
    min_delay: float = 3.0
    max_delay: float = 7.0
    max_retries: int = 3
    backoff_unit: float = 1.0
    headless: bool = True
    listings_per_page: int = 3
    description_max_chars: int = 200
    settle_delay: float = 3.0
    scroll_pause: float = 4.0
    scroll_steps: Tuple[int, ...] = (800, 1600)
    # Dotted paths for backend/exporter to allow runtime swapping without code changes.
    backend: str = DEFAULT_BACKEND
    exporter: str = DEFAULT_EXPORTER
    # Extra adapters (dotted class paths) to register at startup
    extra_adapters: List[str] = field(default_factory=list)
    # Where to write results
    output_path: str = "output/listings.json"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["scroll_steps"] = list(self.scroll_steps)
        return data

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        defaults = cls()

        def _get(name: str, default: Any) -> str:
            return os.getenv(f"RENTAL_CRAWLER_{name}", str(default))

        steps = _get("SCROLL_STEPS", ",".join(str(s) for s in defaults.scroll_steps))

        return cls(
            base_url=_get("BASE_URL", defaults.base_url),
            max_sections=int(_get("MAX_SECTIONS", defaults.max_sections)),
            workers_per_section=int(_get("WORKERS", defaults.workers_per_section)),
            request_timeout=float(_get("REQUEST_TIMEOUT", defaults.request_timeout)),
            homepage_timeout=float(_get("HOMEPAGE_TIMEOUT", defaults.homepage_timeout)),
            min_delay=float(_get("MIN_DELAY", defaults.min_delay)),
            max_delay=float(_get("MAX_DELAY", defaults.max_delay)),
            max_retries=int(_get("MAX_RETRIES", defaults.max_retries)),
            backoff_unit=float(_get("BACKOFF_UNIT", defaults.backoff_unit)),
            headless=_parse_bool(_get("HEADLESS", "true")),
            listings_per_page=int(_get("LISTINGS_PER_PAGE", defaults.listings_per_page)),
            description_max_chars=int(_get("DESCRIPTION_MAX_CHARS", defaults.description_max_chars)),
            settle_delay=float(_get("SETTLE_DELAY", defaults.settle_delay)),
            scroll_pause=float(_get("SCROLL_PAUSE", defaults.scroll_pause)),
            scroll_steps=tuple(int(s) for s in steps.split(",") if s.strip()),
            backend=_get("BACKEND", DEFAULT_BACKEND),
            exporter=_get("EXPORTER", DEFAULT_EXPORTER),
            extra_adapters=[a.strip() for a in _get("EXTRA_ADAPTERS", "").split(",") if a.strip()],
            output_path=_get("OUTPUT_PATH", defaults.output_path),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for future versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        if "scroll_steps" in data:
            data["scroll_steps"] = tuple(data["scroll_steps"])
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.base_url.strip():
            raise ValueError("base_url cannot be empty.")
        if self.max_sections < 1:
            raise ValueError("max_sections must be >= 1")
        if self.workers_per_section < 1:
            raise ValueError("workers_per_section must be >= 1")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.request_timeout <= 0 or self.homepage_timeout <= 0:
            raise ValueError("timeouts must be > 0")
        if self.min_delay < 0 or self.max_delay < self.min_delay:
            raise ValueError("delays must satisfy 0 <= min_delay <= max_delay")
        if self.listings_per_page < 1:
            raise ValueError("listings_per_page must be >= 1")
        if self.description_max_chars < 1:
            raise ValueError("description_max_chars must be >= 1")
        # Validate output path parent exists or is creatable
        parent = Path(self.output_path).parent
        parent.mkdir(parents=True, exist_ok=True)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 files used the original worker/page naming.
        renames = {"max_pages": "max_sections", "max_workers": "workers_per_section"}
        for old, new in renames.items():
            if old in raw:
                raw.setdefault(new, raw.pop(old))
        raw["schema_version"] = 2

    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
