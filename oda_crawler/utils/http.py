from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Union

import aiohttp
from aiohttp import ClientSession, ClientTimeout

logger = logging.getLogger(__name__)


# ---- Outcomes ---------------------------------------------------------------
# FetchClient never raises for HTTP or network conditions; it returns one of
# these and the retry scheduler decides what happens next.


@dataclass(frozen=True)
class Success:
    url: str
    status: int
    body: str


@dataclass(frozen=True)
class RateLimited:
    url: str
    retry_after: Optional[float] = None  # seconds, None when absent/unusable


@dataclass(frozen=True)
class ClientFailure:
    url: str
    status: int


@dataclass(frozen=True)
class TransientFailure:
    url: str
    reason: str
    status: Optional[int] = None


FetchOutcome = Union[Success, RateLimited, ClientFailure, TransientFailure]


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Convert a Retry-After header into a delay in seconds.
    Accepts delta-seconds or an HTTP date; anything unparseable or non-positive is None.
    """
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return None
        if when is None:
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        seconds = (when - now).total_seconds()
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


class FetchClient:
    """
    Performs exactly one GET per call against base_url + path and classifies
    the response. 404s are reported through ``on_not_found``.
    """

    def __init__(
        self,
        session: ClientSession,
        base_url: str,
        *,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        follow_redirects: bool = True,
        on_not_found: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.on_not_found = on_not_found
        self.headers = {"User-Agent": user_agent} if user_agent else {}
        self.request_count = 0

    async def fetch(self, path: str) -> FetchOutcome:
        url = self.base_url + path
        self.request_count += 1
        try:
            async with self.session.get(
                url,
                headers=self.headers,
                timeout=ClientTimeout(total=self.timeout),
                allow_redirects=self.follow_redirects,
            ) as resp:
                status = resp.status
                if 400 <= status < 500:
                    return self._client_outcome(path, url, status, resp.headers.get("Retry-After"))
                if status >= 300:
                    return TransientFailure(url=url, reason=resp.reason or "HTTP error", status=status)
                body = await resp.text()
                return Success(url=url, status=status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            logger.debug("Request to %s failed: %r", url, exc)
            return TransientFailure(url=url, reason=repr(exc))

    def _client_outcome(self, path: str, url: str, status: int, retry_after: Optional[str]) -> FetchOutcome:
        if status == 404 and self.on_not_found is not None:
            self.on_not_found(path)
        if status == 429:
            return RateLimited(url=url, retry_after=parse_retry_after(retry_after))
        return ClientFailure(url=url, status=status)


def create_session(max_connections: int = 0) -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=max_connections)  # 0 = unlimited; the admission gate caps width
    return aiohttp.ClientSession(connector=connector)
