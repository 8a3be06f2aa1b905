from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Set

from ..adapters.base import ProductRecord


@dataclass
class ResultSnapshot:
    products: Dict[str, ProductRecord] = field(default_factory=dict)
    broken_links: List[str] = field(default_factory=list)

    def products_dict(self) -> Dict[str, Dict]:
        return {key: record.to_dict() for key, record in self.products.items()}


class ResultStore:
    """
    Shared crawl state: visited paths, broken links and products by id.
    Every mutation is a single insert or overwrite under one lock, so it is
    safe from concurrent branches whether they run as tasks or threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._visited: Set[str] = set()
        self._broken: Set[str] = set()
        self._products: Dict[str, ProductRecord] = {}

    def mark_visited(self, path: str) -> bool:
        """Insert ``path``; False if some branch already claimed it."""
        with self._lock:
            if path in self._visited:
                return False
            self._visited.add(path)
            return True

    def is_visited(self, path: str) -> bool:
        with self._lock:
            return path in self._visited

    def add_broken_link(self, path: str) -> None:
        with self._lock:
            self._broken.add(path)

    def put_product(self, key: str, record: ProductRecord) -> None:
        with self._lock:
            self._products[key] = record

    @property
    def visited_count(self) -> int:
        with self._lock:
            return len(self._visited)

    def snapshot(self) -> ResultSnapshot:
        with self._lock:
            return ResultSnapshot(products=dict(self._products), broken_links=sorted(self._broken))
