from __future__ import annotations

from typing import Any, Dict, Optional
import logging

try:
    from fastapi import FastAPI, HTTPException
    from pydantic import BaseModel
except Exception as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install 'rental-crawler[api]'` "
        "or avoid using the API server."
    ) from exc

from ..config import CrawlConfig
from ..errors import FatalCrawlError
from ..utils.loader import load_symbol
from ..engines.base import CrawlReport
from ..engines.listing_engine import run_crawl
from ..export.report import build_report
from ..ui.cli import build_registry
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="rental_crawler API", version=__version__)


class CrawlRequest(BaseModel):
    base_url: Optional[str] = None
    max_sections: Optional[int] = None
    workers_per_section: Optional[int] = None
    request_timeout: Optional[float] = None
    min_delay: Optional[float] = None
    max_delay: Optional[float] = None
    max_retries: Optional[int] = None
    headless: Optional[bool] = None


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/crawl")
async def crawl(req: CrawlRequest) -> Dict[str, Any]:
    cfg = CrawlConfig.from_env()
    for name, value in req.model_dump(exclude_none=True).items():
        setattr(cfg, name, value)

    try:
        cfg.validate()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    backend = load_symbol(cfg.backend)()
    try:
        report: CrawlReport = await run_crawl(cfg, backend=backend, adapters=build_registry(cfg))
    except FatalCrawlError as exc:
        logger.error("Crawl aborted during %s: %s", exc.stage, exc)
        raise HTTPException(status_code=502, detail=f"{exc.stage} failed: {exc}") from exc

    summary = build_report(report.listings)
    payload = report.to_dict()
    payload["summary"] = {
        "total_listings": summary.total_listings,
        "average_price": summary.average_price,
        "min_price": summary.min_price,
        "max_price": summary.max_price,
        "listings_by_location": summary.listings_by_location,
    }
    return payload
