from __future__ import annotations

import csv
from pathlib import Path

from ..engines.state import ResultSnapshot


class CSVExporter:
    """
    Writes one row per product id, and the broken links as a single-column CSV.
    """

    _headers = [
        "id",
        "name",
        "price",
        "brand",
        "unit_price",
        "description",
    ]

    def export(self, snapshot: ResultSnapshot, output_path: str, broken_links_path: str) -> None:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for key, product in snapshot.products.items():
                w.writerow(
                    [
                        key,
                        product.name,
                        "" if product.price is None else product.price,
                        product.brand or "",
                        product.unit_price or "",
                        product.description or "",
                    ]
                )

        Path(broken_links_path).parent.mkdir(parents=True, exist_ok=True)
        with open(broken_links_path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(["path"])
            for path in snapshot.broken_links:
                w.writerow([path])
