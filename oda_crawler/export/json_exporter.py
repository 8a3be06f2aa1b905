from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..engines.state import ResultSnapshot


def _write_json(path: str, payload: Any) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


class JSONExporter:
    """Writes the product map and the broken-link list as two JSON documents."""

    def export(self, snapshot: ResultSnapshot, output_path: str, broken_links_path: str) -> None:
        _write_json(output_path, snapshot.products_dict())
        _write_json(broken_links_path, list(snapshot.broken_links))
