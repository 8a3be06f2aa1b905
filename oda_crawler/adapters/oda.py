from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup

from .base import ParseResult, ProductRecord
from ..utils.parsing import (
    cleanup_text,
    extract_paths,
    fallback_name,
    parse_price,
    product_key,
    product_slug,
)


class OdaProductAdapter:
    """Reads oda.com product microdata and same-origin navigation links."""

    name = "oda"

    def parse(self, path: str, html: str) -> ParseResult:
        soup = BeautifulSoup(html, "html.parser")
        result = ParseResult(next_links=extract_paths(soup))

        key = product_key(path)
        if key is not None:
            result.product_id = key
            result.product = self._extract_product(soup, product_slug(path) or key)
        return result

    # ---- Extraction helpers -------------------------------------------------

    def _extract_product(self, soup: BeautifulSoup, slug: str) -> ProductRecord:
        price_node = soup.select_one(".price")
        price = parse_price(price_node.get("content")) if price_node else None
        return ProductRecord(
            name=self._text_or_none(soup, '[itemprop="name"]') or fallback_name(slug),
            price=price,
            brand=self._text_or_none(soup, '[itemprop="brand"]'),
            unit_price=self._text_or_none(soup, ".unit-price"),
            description=self._text_or_none(soup, '[itemprop="description"]'),
        )

    def _text_or_none(self, soup: BeautifulSoup, selector: str) -> Optional[str]:
        node = soup.select_one(selector)
        if not node:
            return None
        return cleanup_text(node.get_text())
