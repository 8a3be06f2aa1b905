from __future__ import annotations

from typing import Any, Optional


class CrawlError(Exception):
    """Base error for crawl operations."""


class FetchError(CrawlError):
    """A classified failure for a single URL. Contained at the branch level."""

    def __init__(self, url: str, message: str = "fetch failed") -> None:
        super().__init__(f"{message}: {url}")
        self.url = url


class ClientError(FetchError):
    """4xx response (other than 429). Terminal: never retried."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(url, f"client error {status}")
        self.status = status


class NotFoundError(ClientError):
    """404 response. Terminal, and the URL is recorded as a broken link."""

    def __init__(self, url: str) -> None:
        super().__init__(url, 404)


class RateLimitError(FetchError):
    """HTTP 429 / rate limited."""

    def __init__(self, url: str, retry_after: Optional[float] = None) -> None:
        super().__init__(url, "rate limited")
        self.retry_after = retry_after


class TransientFetchError(FetchError):
    """Redirect, 5xx or network failure. Retryable."""


class ExhaustedRetriesError(FetchError):
    def __init__(self, url: str, attempts: int, last_outcome: Any = None) -> None:
        super().__init__(url, f"gave up after {attempts} attempt(s)")
        self.attempts = attempts
        self.last_outcome = last_outcome
