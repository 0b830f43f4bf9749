"""Shared test fixtures for the serverversions test suite."""

from __future__ import annotations

import pytest
from listing_pages import BASE_URL, FakeFetcher

from serverversions.cache import VersionCache
from serverversions.config import Settings
from serverversions.watcher import Watcher


@pytest.fixture()
def settings() -> Settings:
    return Settings(scraper={"base_url": BASE_URL, "max_retries": 0})


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def cache() -> VersionCache:
    return VersionCache()


@pytest.fixture()
def watcher(fetcher: FakeFetcher, cache: VersionCache, settings: Settings) -> Watcher:
    return Watcher(fetcher, cache, settings)
