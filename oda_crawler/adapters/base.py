from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class ProductRecord:
    """Structured fields extracted from one product page."""

    name: str
    price: Optional[int] = None
    brand: Optional[str] = None
    unit_price: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "price": self.price,
            "brand": self.brand,
            "unitPrice": self.unit_price,
            "description": self.description,
        }
        # Drop unset keys for a cleaner export.
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class ParseResult:
    next_links: List[str] = field(default_factory=list)
    product_id: Optional[str] = None
    product: Optional[ProductRecord] = None


class PageAdapter(Protocol):
    """
    Interface for site-specific parsing logic.
    Engine owns the HTTP, dedup and depth control; adapters only read HTML.
    """

    name: str

    def parse(self, path: str, html: str) -> ParseResult:
        """
        Given the page path and its HTML, return same-origin links and, for
        product pages, the product id and record.
        """
        ...
