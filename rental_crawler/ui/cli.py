from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import CrawlConfig
from ..errors import FatalCrawlError
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..adapters.registry import AdapterRegistry
from ..engines.base import CrawlReport
from ..engines.listing_engine import run_crawl
from ..export.base import Exporter
from ..export.report import build_report, format_report

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Vacation rental listing crawler")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--base-url", type=str, default=None, help="Site root to discover sections from")
    p.add_argument("--sections", type=int, default=None, help="Number of homepage sections to crawl")
    p.add_argument("--workers", type=int, default=None, help="Concurrent workers per section")
    p.add_argument("--timeout", type=float, default=None, help="Per-page timeout in seconds")
    p.add_argument("--min-delay", type=float, default=None, help="Minimum pause before each property visit")
    p.add_argument("--max-delay", type=float, default=None, help="Maximum pause before each property visit")
    p.add_argument("--retries", type=int, default=None, help="Attempts per property before giving up")
    p.add_argument("--headful", action="store_true", help="Show the browser window")
    p.add_argument("--backend", type=str, default=None, help="Browser backend dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--extra-adapters", type=str, default=None,
                   help="Comma-separated dotted paths for additional adapters")
    p.add_argument("--output", type=str, default=None, help="Output file path")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.base_url:
        cfg.base_url = args.base_url
    if args.sections is not None:
        cfg.max_sections = args.sections
    if args.workers is not None:
        cfg.workers_per_section = args.workers
    if args.timeout is not None:
        cfg.request_timeout = args.timeout
    if args.min_delay is not None:
        cfg.min_delay = args.min_delay
    if args.max_delay is not None:
        cfg.max_delay = args.max_delay
    if args.retries is not None:
        cfg.max_retries = args.retries
    if args.headful:
        cfg.headless = False
    if args.backend:
        cfg.backend = args.backend
    if args.exporter:
        cfg.exporter = args.exporter
    if args.extra_adapters:
        cfg.extra_adapters = [a.strip() for a in args.extra_adapters.split(",") if a.strip()]
    if args.output:
        cfg.output_path = args.output

    cfg.validate()
    return cfg


def build_registry(cfg: CrawlConfig) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.discover_entry_points()
    # Allow runtime registration of additional adapters
    for dotted in cfg.extra_adapters:
        try:
            adapter_cls = load_symbol(dotted)
            registry.register(adapter_cls())
        except Exception as exc:
            logger.warning("Failed to load adapter %s: %r", dotted, exc)
    return registry


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install dependencies: pip install 'rental-crawler[api]'") from exc
    uvicorn.run("rental_crawler.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
        # Dynamic backend + exporter loading so upgrades don't require code edits.
        backend_cls = load_symbol(cfg.backend)
        exporter_cls = load_symbol(cfg.exporter)
    except (ValueError, TypeError, OSError, ImportError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        report: CrawlReport = asyncio.run(run_crawl(cfg, backend=backend_cls(), adapters=build_registry(cfg)))
    except FatalCrawlError as exc:
        logger.error("Crawl aborted during %s: %s", exc.stage, exc)
        return 1

    if not report.listings:
        logger.warning("No listings scraped (failed jobs: %d, skipped sections: %d)",
                       report.failed_jobs, report.sections_skipped)
        return 0

    exporter: Exporter = exporter_cls()
    exporter.export(report.listings, cfg.output_path)

    logger.info("Sections: %d/%d | Listings: %d | Failed: %d | Output: %s",
                report.sections_processed,
                report.sections_found,
                len(report.listings),
                report.failed_jobs,
                cfg.output_path)
    print(format_report(build_report(report.listings)))
    return 0
