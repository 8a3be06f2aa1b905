from __future__ import annotations

import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

_PRODUCT_PATH = re.compile(r"products/(\d+)([^/?#]*)")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


def cleanup_text(text: Optional[str]) -> Optional[str]:
    """
    Trim, fold newlines into spaces and collapse whitespace runs.
    Returns None for missing or blank text.
    """
    if text is None:
        return None
    cleaned = _WHITESPACE_RUN.sub(" ", text.strip().replace("\n", " "))
    return cleaned or None


def parse_price(raw: Optional[str]) -> Optional[int]:
    """
    Parse the leading integer of a price attribute ("45", "45.90" -> 45).
    Malformed or missing input yields None rather than an error.
    """
    if not raw:
        return None
    match = _LEADING_INT.match(raw)
    if not match:
        return None
    return int(match.group(1))


def product_key(path: str) -> Optional[str]:
    """Numeric product id embedded in a product page path, if any."""
    match = _PRODUCT_PATH.search(path)
    return match.group(1) if match else None


def product_slug(path: str) -> Optional[str]:
    """Path segment that starts with the product id, e.g. "123-organic-milk"."""
    match = _PRODUCT_PATH.search(path)
    return match.group(1) + match.group(2) if match else None


def fallback_name(slug: str) -> str:
    """Readable name from a product slug: "123-organic-milk" -> "organic milk"."""
    return slug[slug.find("-") + 1:].replace("-", " ")


def is_same_origin_path(href: Optional[str]) -> bool:
    return bool(href) and href.startswith("/")


def extract_paths(soup: BeautifulSoup) -> List[str]:
    """
    Same-origin relative paths from every anchor, de-duplicated in document order.
    """
    hrefs: Iterable[Optional[str]] = (a.get("href") for a in soup.find_all("a"))
    return list(dict.fromkeys(h for h in hrefs if is_same_origin_path(h)))
