"""Protocol interfaces for swappable components.

The watcher references these protocols, not the concrete implementations,
so tests can plug in lightweight in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bs4 import BeautifulSoup

    from serverversions.models.version import ServerVersion


class FetcherProtocol(Protocol):
    """Interface for the listing page fetcher."""

    async def fetch(self, url: str) -> BeautifulSoup: ...


class VersionCacheProtocol(Protocol):
    """Interface for the host -> version store."""

    async def merge(self, versions: Mapping[str, ServerVersion]) -> None: ...

    async def get(self, host: str) -> ServerVersion | None: ...

    async def find_containing(self, fragment: str) -> ServerVersion | None: ...

    async def complete_cycle(self) -> int: ...

    async def prune(self, max_missed_cycles: int) -> int: ...

    async def size(self) -> int: ...
