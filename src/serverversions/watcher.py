"""Version watcher: background refresh of the listing plus point lookups.

The refresh loop walks every listing page in order, one request at a time,
and merges each page into the cache as soon as it parses. A failed page is
logged and skipped; a failed root page skips the whole pass. Neither
ever escapes the background task.

Lookups read the cache first. On a miss they query the site's search page
for that host, merge whatever it returns, and then fall back to a substring
match over the whole cache.
"""

from __future__ import annotations

import asyncio
import contextlib
from enum import StrEnum
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog

from serverversions.cache import VersionCache
from serverversions.errors import VersionNotFoundError, WatcherError
from serverversions.fetcher import PageFetcher
from serverversions.models.listing import RefreshReport
from serverversions.pagination import UNKNOWN_LAST_PAGE, resolve_pagination
from serverversions.parser import parse_listing

if TYPE_CHECKING:
    import httpx
    from bs4 import BeautifulSoup

    from serverversions.config import Settings
    from serverversions.models.version import ServerVersion
    from serverversions.protocols import FetcherProtocol, VersionCacheProtocol

log = structlog.get_logger()


class WatcherState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class Watcher:
    """Keeps the host -> version cache fresh and answers lookups against it."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        cache: VersionCacheProtocol,
        settings: Settings,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._settings = settings
        self._task: asyncio.Task[None] | None = None
        self._passes = 0
        self.state = WatcherState.CREATED

    @property
    def cache(self) -> VersionCacheProtocol:
        return self._cache

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    @property
    def root_url(self) -> str:
        return self._settings.scraper.root_url

    def page_url(self, page: int) -> str:
        return f"{self.root_url}/page/{page}"

    def search_url(self, host: str) -> str:
        return f"{self.root_url}/search/{quote(host, safe='')}"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def version_by_server(self, host: str) -> ServerVersion:
        """Return the advertised version for ``host``.

        Raises VersionNotFoundError when neither the cache nor the site's
        search page knows the host; NetworkError and ParseError from the
        on-miss search propagate unchanged.
        """
        version = await self._cache.get(host)
        if version is not None:
            log.debug("lookup_cache_hit", host=host)
            return version

        log.info("lookup_cache_miss", host=host)
        found = await self._scan_page(self.search_url(host))
        if not found:
            raise VersionNotFoundError(f"version not found for host {host}")

        await self._cache.merge(found)

        version = await self._cache.get(host)
        if version is None:
            version = await self._cache.find_containing(host)
        if version is None:
            raise VersionNotFoundError(f"version not found for server {host}")
        return version

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _parse(self, document: BeautifulSoup, url: str) -> dict[str, ServerVersion]:
        return parse_listing(
            document,
            self._settings.markers,
            selectors=self._settings.selectors,
            policy=self._settings.scraper.invalid_entry_policy,
            page_url=url,
        )

    async def _scan_page(self, url: str) -> dict[str, ServerVersion]:
        return self._parse(await self._fetcher.fetch(url), url)

    async def refresh(self, stop_event: asyncio.Event | None = None) -> RefreshReport:
        """Run one full pass over the listing. Never raises WatcherError.

        Without pagination links the root page is the whole listing and is
        parsed as fetched. ``stop_event`` is checked before each page request,
        so once it is set no new request is issued. Only a clean pass counts
        towards pruning.
        """
        report = RefreshReport()
        self._passes += 1
        pass_log = log.bind(refresh_pass=self._passes)

        try:
            report.last_page, root_document = await resolve_pagination(
                self._fetcher, self.root_url, self._settings.selectors.pagination
            )
        except WatcherError as exc:
            pass_log.warning("refresh_aborted", url=self.root_url, reason=exc.message)
            report.aborted = True
            return report

        if report.last_page == UNKNOWN_LAST_PAGE:
            try:
                found = self._parse(root_document, self.root_url)
            except WatcherError as exc:
                pass_log.warning("page_scan_failed", page=1, url=self.root_url, reason=exc.message)
                report.failed_pages.append(1)
            else:
                await self._merge_page(found, report)

        for page in range(1, report.last_page + 1):
            if stop_event is not None and stop_event.is_set():
                report.cancelled = True
                break
            url = self.page_url(page)
            try:
                found = await self._scan_page(url)
            except WatcherError as exc:
                pass_log.warning("page_scan_failed", page=page, url=url, reason=exc.message)
                report.failed_pages.append(page)
                continue
            await self._merge_page(found, report)

        if report.clean:
            await self._cache.complete_cycle()
            prune_after = self._settings.cache.prune_after_cycles
            if prune_after is not None:
                report.pruned = await self._cache.prune(prune_after)

        pass_log.info(
            "refresh_complete",
            last_page=report.last_page,
            pages_scanned=report.pages_scanned,
            failed_pages=report.failed_pages,
            entries_merged=report.entries_merged,
            cancelled=report.cancelled,
            cache_size=await self._cache.size(),
        )
        return report

    async def _merge_page(self, found: dict[str, ServerVersion], report: RefreshReport) -> None:
        await self._cache.merge(found)
        report.pages_scanned += 1
        report.entries_merged += len(found)

    def _claim(self, action: str) -> None:
        # CREATED -> RUNNING happens once; a stopped watcher never restarts.
        if self.state is not WatcherState.CREATED:
            raise RuntimeError(f"watcher cannot be {action} from state {self.state}")
        self.state = WatcherState.RUNNING

    async def _loop(self, stop_event: asyncio.Event, interval_seconds: float) -> None:
        log.info("watcher_started", interval_seconds=interval_seconds)
        try:
            while not stop_event.is_set():
                try:
                    await self.refresh(stop_event)
                except Exception:
                    log.error("refresh_unexpected_error", exc_info=True)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        finally:
            self.state = WatcherState.STOPPED
            log.info("watcher_stopped")

    async def run(self, stop_event: asyncio.Event, interval_seconds: float) -> None:
        """Refresh immediately, then every ``interval_seconds`` until stopped.

        Runs in the calling task; ``start`` spawns it in the background instead.
        Either may be used once per watcher.
        """
        self._claim("run")
        await self._loop(stop_event, interval_seconds)

    def start(self, stop_event: asyncio.Event, interval_seconds: float) -> asyncio.Task[None]:
        """Spawn the background refresh task. A watcher can only be started once."""
        self._claim("started")
        self._task = asyncio.create_task(self._loop(stop_event, interval_seconds))
        return self._task


def build_watcher(settings: Settings, client: httpx.AsyncClient) -> Watcher:
    """Wire a Watcher with the real fetcher and an empty cache."""
    fetcher = PageFetcher(
        client,
        max_retries=settings.scraper.max_retries,
        retry_backoff_seconds=settings.scraper.retry_backoff_seconds,
    )
    return Watcher(fetcher, VersionCache(), settings)
