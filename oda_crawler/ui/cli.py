from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import CrawlConfig
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..engines.base import CrawlReport
from ..export.base import SnapshotExporter

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Single-origin product crawler")
    p.add_argument("start_path", nargs="?", default=None, help="Path to start from (default from config, '/no')")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--base-url", type=str, default=None, help="Origin all paths resolve against (env BASE_URL)")
    p.add_argument("--max-depth", type=int, default=None, help="Max crawl depth (default from config)")
    p.add_argument("--max-concurrency", type=int, default=None, help="Max in-flight requests (default from config)")
    p.add_argument("--max-attempts", type=int, default=None, help="Attempts per URL, including the first")
    p.add_argument("--engine", type=str, default=None, help="Engine dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--adapter", type=str, default=None, help="Page adapter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Product output file path")
    p.add_argument("--broken-links-output", type=str, default=None, help="Broken link output file path")
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

    if args.start_path:
        cfg.start_path = args.start_path
    if args.base_url:
        cfg.base_url = args.base_url
    if args.max_depth is not None:
        cfg.max_depth = args.max_depth
    if args.max_concurrency is not None:
        cfg.max_concurrency = args.max_concurrency
    if args.max_attempts is not None:
        cfg.max_attempts = args.max_attempts
    if args.engine:
        cfg.engine = args.engine
    if args.exporter:
        cfg.exporter = args.exporter
    if args.adapter:
        cfg.adapter = args.adapter
    if args.output:
        cfg.output_path = args.output
    if args.broken_links_output:
        cfg.broken_links_path = args.broken_links_output

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install dependencies: pip install 'oda-crawler[api]'") from exc
    uvicorn.run("oda_crawler.apis.app:app", host=host, port=port)


def log_report(report: CrawlReport, cfg: CrawlConfig) -> None:
    stats = report.stats
    logger.info("elapsed time (seconds): %.1f", stats.elapsed_seconds)
    logger.info("total requests: %s", stats.total_requests)
    logger.info("requests per second: %.2f", stats.requests_per_second)
    logger.info("Visited: %s | Products: %s | Broken links: %s | Output: %s, %s",
                stats.visited_count,
                len(report.snapshot.products),
                len(report.snapshot.broken_links),
                cfg.output_path,
                cfg.broken_links_path)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
        # Dynamic engine, exporter and adapter loading so upgrades don't require code edits.
        engine_cls = load_symbol(cfg.engine)
        exporter_cls = load_symbol(cfg.exporter)
        adapter_cls = load_symbol(cfg.adapter)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    async def _run() -> CrawlReport:
        engine = engine_cls(cfg, adapter=adapter_cls())
        return await engine.crawl()

    report: CrawlReport = asyncio.run(_run())

    exporter: SnapshotExporter = exporter_cls()
    exporter.export(report.snapshot, cfg.output_path, cfg.broken_links_path)

    log_report(report, cfg)
    return 0
