from __future__ import annotations

from typing import Any, Dict, Optional
import logging

try:
    from fastapi import FastAPI, HTTPException
    from pydantic import BaseModel
except Exception as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install 'oda-crawler[api]'` "
        "or avoid using the API server."
    ) from exc

from ..config import CrawlConfig
from ..utils.loader import load_symbol
from ..engines.base import CrawlReport
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="oda_crawler API", version=__version__)


class CrawlRequest(BaseModel):
    base_url: Optional[str] = None
    start_path: Optional[str] = None
    max_depth: Optional[int] = None
    max_concurrency: Optional[int] = None
    engine: Optional[str] = None


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/crawl")
async def crawl(req: CrawlRequest) -> Dict[str, Any]:
    cfg = CrawlConfig.from_env()
    if req.base_url:
        cfg.base_url = req.base_url
    if req.start_path:
        cfg.start_path = req.start_path
    if req.max_depth is not None:
        cfg.max_depth = req.max_depth
    if req.max_concurrency is not None:
        cfg.max_concurrency = req.max_concurrency
    if req.engine:
        cfg.engine = req.engine

    try:
        cfg.validate()
        engine_cls = load_symbol(cfg.engine)
        adapter_cls = load_symbol(cfg.adapter)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    engine = engine_cls(cfg, adapter=adapter_cls())
    report: CrawlReport = await engine.crawl()
    logger.info("API crawl of %s finished: %s requests", cfg.url_for(cfg.start_path), report.stats.total_requests)
    return {
        "products": report.snapshot.products_dict(),
        "broken_links": report.snapshot.broken_links,
        "stats": report.stats.to_dict(),
    }
