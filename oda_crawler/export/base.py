from __future__ import annotations

from typing import Protocol

from ..engines.state import ResultSnapshot


class SnapshotExporter(Protocol):
    def export(self, snapshot: ResultSnapshot, output_path: str, broken_links_path: str) -> None:
        ...
