from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from .base import CrawlEngine, CrawlReport, CrawlStats
from .state import ResultStore
from ..config import CrawlConfig
from ..adapters.base import PageAdapter
from ..adapters.oda import OdaProductAdapter
from ..errors import FetchError
from ..utils.admission import AdmissionGate
from ..utils.http import FetchClient, FetchOutcome, create_session
from ..utils.retry import RetryPolicy, Sleep, run_with_retry

logger = logging.getLogger(__name__)


class RecursiveCrawlEngine(CrawlEngine):
    """
    Depth-bounded recursive crawl of a single origin.
    - Each page fans out one task per new link and joins them all.
    - Every network attempt passes through the admission gate.
    - Per-URL failures end that branch only.
    """
    def __init__(
        self,
        config: CrawlConfig,
        adapter: PageAdapter | None = None,
        *,
        store: ResultStore | None = None,
        client: Optional[FetchClient] = None,
        gate: AdmissionGate | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.adapter = adapter or OdaProductAdapter()
        self.store = store or ResultStore()
        self.gate = gate or AdmissionGate(config.max_concurrency)
        self.policy = RetryPolicy.from_config(config)
        self.client = client
        self._active: Optional[FetchClient] = None
        self._sleep = sleep
        self._started = False

    async def crawl(self) -> CrawlReport:
        """
        Run the crawl once. The store is shared run state, so an engine
        instance cannot be crawled a second time.
        """
        if self._started:
            raise RuntimeError("RecursiveCrawlEngine runs once; create a new engine for another crawl")
        self._started = True

        cfg = self.config
        started = time.monotonic()

        session = None
        client = self.client
        if client is None:
            session = create_session()
            client = FetchClient(
                session,
                cfg.base_url,
                timeout=cfg.request_timeout,
                user_agent=cfg.user_agent,
                follow_redirects=cfg.follow_redirects,
                on_not_found=self.store.add_broken_link,
            )

        self._active = client
        try:
            await self.crawl_path(cfg.start_path, 0)
        finally:
            self._active = None
            if session is not None:
                await session.close()

        stats = CrawlStats(
            total_requests=client.request_count,
            elapsed_seconds=time.monotonic() - started,
            visited_count=self.store.visited_count,
            peak_in_flight=self.gate.peak_in_flight,
        )
        return CrawlReport(snapshot=self.store.snapshot(), stats=stats)

    async def crawl_path(self, path: str, depth: int) -> None:
        # Claim the path before any await so concurrent parents cannot both fetch it.
        if not self.store.mark_visited(path):
            return
        if depth > self.config.max_depth:
            return

        try:
            page = await run_with_retry(lambda: self._fetch(path), self.policy, sleep=self._sleep)
        except FetchError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            return
        logger.info("finish: %s", path)

        try:
            parsed = self.adapter.parse(path, page.body)
        except Exception as exc:
            logger.warning("Adapter %s failed on %s: %r", getattr(self.adapter, "name", self.adapter), path, exc)
            return

        if parsed.product_id is not None and parsed.product is not None:
            self.store.put_product(parsed.product_id, parsed.product)

        links: List[str] = [link for link in parsed.next_links if not self.store.is_visited(link)]
        if not links:
            return

        results = await asyncio.gather(
            *(self.crawl_path(link, depth + 1) for link in links),
            return_exceptions=True,
        )
        # Classified failures never get here; anything left is a bug and halts the run
        # once every sibling has settled.
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _fetch(self, path: str) -> FetchOutcome:
        async with self.gate.slot():
            return await self._active.fetch(path)
