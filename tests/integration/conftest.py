"""Integration test fixtures.

Provides an AppState wired to a watcher over the in-memory listing fetcher,
and a baseline environment for subprocess-based MCP tests.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from serverversions.state import AppState

if TYPE_CHECKING:
    from pathlib import Path

    from serverversions.config import Settings
    from serverversions.watcher import Watcher


@pytest.fixture()
def app_state(settings: Settings, watcher: Watcher) -> AppState:
    return AppState(settings=settings, watcher=watcher)


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env for running the server over stdio.

    Points the listing at a closed local port so the background refresh
    fails fast instead of reaching the real site.
    """
    env = os.environ.copy()
    env["SERVERVERSIONS__SERVER__TRANSPORT"] = "stdio"
    env["SERVERVERSIONS__SCRAPER__BASE_URL"] = "http://127.0.0.1:1"
    env["SERVERVERSIONS__SCRAPER__MAX_RETRIES"] = "0"
    env["SERVERVERSIONS__LOGGING__LEVEL"] = "WARNING"
    return env
