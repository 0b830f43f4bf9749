"""HTTP page fetcher for the server listing site.

All network I/O for the watcher goes through a single PageFetcher. It
receives an httpx.AsyncClient via constructor injection; the lifespan owns
the client lifecycle.
"""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING

import httpx
import structlog
from bs4 import BeautifulSoup

from serverversions.errors import NetworkError

if TYPE_CHECKING:
    from serverversions.config import ScraperSettings

log = structlog.get_logger()

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def build_http_client(settings: ScraperSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.request_timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=4,
            max_keepalive_connections=2,
        ),
    )


def _backoff_delay(base_seconds: float, attempt: int) -> float:
    return base_seconds * (2**attempt) * random.uniform(0.8, 1.2)


class PageFetcher:
    """Fetches a listing page and hands back the parsed HTML document."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_retries: int = 0,
        retry_backoff_seconds: float = 1.0,
    ) -> None:
        self._client = client
        self._max_retries = max_retries
        self._retry_backoff_seconds = retry_backoff_seconds

    async def fetch(self, url: str) -> BeautifulSoup:
        """GET ``url`` and parse the body as HTML.

        Raises NetworkError on transport failures and on any status other
        than 200, once the retry budget is spent.
        """
        attempt = 0
        while True:
            try:
                return await self._fetch_once(url)
            except NetworkError as exc:
                if not exc.recoverable or attempt >= self._max_retries:
                    raise
                delay = _backoff_delay(self._retry_backoff_seconds, attempt)
                attempt += 1
                log.info(
                    "fetch_retry",
                    url=url,
                    attempt=attempt,
                    delay_seconds=round(delay, 2),
                    reason=exc.message,
                )
                await asyncio.sleep(delay)

    async def _fetch_once(self, url: str) -> BeautifulSoup:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network error fetching {url}: {exc}") from exc

        if response.status_code != 200:
            log.warning("fetch_bad_status", url=url, status_code=response.status_code)
            raise NetworkError(
                f"HTTP {response.status_code} fetching {url}",
                recoverable=response.status_code in _RETRYABLE_STATUS_CODES,
            )

        log.debug(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return BeautifulSoup(response.text, "lxml")
