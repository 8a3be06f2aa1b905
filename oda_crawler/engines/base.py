from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict
from abc import ABC, abstractmethod

from .state import ResultSnapshot


@dataclass
class CrawlStats:
    total_requests: int = 0
    elapsed_seconds: float = 0.0
    visited_count: int = 0
    peak_in_flight: int = 0

    @property
    def requests_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_requests / self.elapsed_seconds

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["requests_per_second"] = self.requests_per_second
        return data


@dataclass
class CrawlReport:
    snapshot: ResultSnapshot = field(default_factory=ResultSnapshot)
    stats: CrawlStats = field(default_factory=CrawlStats)


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
