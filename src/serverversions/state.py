"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan
context manager) and handed to every tool handler via the MCP Context.
It is the single owner of the watcher and its cache.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from serverversions.config import Settings
    from serverversions.watcher import Watcher


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    watcher: Watcher
    http_client: httpx.AsyncClient | None = None
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
