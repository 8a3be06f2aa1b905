"""Shared test fixtures: a scripted in-memory site and a recording sleep."""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Callable, Dict, List, Optional, Union

import pytest

from oda_crawler.config import CrawlConfig
from oda_crawler.engines.state import ResultStore
from oda_crawler.utils.http import ClientFailure, FetchOutcome, Success

BASE_URL = "https://shop.test"

PageEntry = Union[str, FetchOutcome, List[FetchOutcome], Callable[[str], FetchOutcome]]


def page(*links: str, body: str = "") -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return f"<html><body>{body}{anchors}</body></html>"


class FakeSite:
    """
    Stands in for FetchClient. Paths map to HTML, a fixed outcome, or a list of
    outcomes served in order. Unknown paths answer 404 and are reported.
    """

    def __init__(
        self,
        pages: Dict[str, PageEntry],
        store: Optional[ResultStore] = None,
        latency: float = 0.0,
    ) -> None:
        self.pages = pages
        self.store = store
        self.latency = latency
        self.request_count = 0
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, path: str) -> FetchOutcome:
        url = BASE_URL + path
        self.request_count += 1
        self.calls[path] += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            entry = self.pages.get(path)
            if entry is None:
                if self.store is not None:
                    self.store.add_broken_link(path)
                return ClientFailure(url=url, status=404)
            if isinstance(entry, str):
                return Success(url=url, status=200, body=entry)
            if isinstance(entry, list):
                return entry.pop(0) if len(entry) > 1 else entry[0]
            if callable(entry):
                return entry(url)
            return entry
        finally:
            self.in_flight -= 1


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def crawl_config(tmp_path) -> CrawlConfig:
    return CrawlConfig(
        base_url=BASE_URL,
        start_path="/",
        output_path=str(tmp_path / "output.json"),
        broken_links_path=str(tmp_path / "brokenLinks.json"),
    )


@pytest.fixture
def store() -> ResultStore:
    return ResultStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
