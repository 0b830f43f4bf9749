"""In-memory version cache.

The cache owns its mapping and its lock; callers only go through the
methods below, each of which is a single critical section. A refresh merges
page by page, so a concurrent reader can observe a pass half-applied.
Entries are never evicted unless the caller opts into ``prune``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Mapping

    from serverversions.models.version import ServerVersion

log = structlog.get_logger()


class VersionCache:
    """Host label -> parsed version, implementing VersionCacheProtocol."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._versions: dict[str, ServerVersion] = {}
        # host -> number of the clean pass it was last merged towards
        self._last_seen: dict[str, int] = {}
        # clean refresh passes completed so far
        self._cycle = 0

    async def merge(self, versions: Mapping[str, ServerVersion]) -> None:
        """Insert or overwrite every entry. Never removes anything."""
        async with self._lock:
            for host, version in versions.items():
                self._versions[host] = version
                self._last_seen[host] = self._cycle + 1

    async def get(self, host: str) -> ServerVersion | None:
        async with self._lock:
            return self._versions.get(host)

    async def find_containing(self, fragment: str) -> ServerVersion | None:
        """Return the version of the first host whose label contains ``fragment``.

        Which host wins among several matches is not part of the contract.
        """
        async with self._lock:
            for host, version in self._versions.items():
                if fragment in host:
                    return version
        return None

    async def complete_cycle(self) -> int:
        """Record a clean refresh pass (``RefreshReport.clean``); returns the count so far."""
        async with self._lock:
            self._cycle += 1
            return self._cycle

    async def prune(self, max_missed_cycles: int) -> int:
        """Drop hosts not merged during the last ``max_missed_cycles`` clean passes."""
        async with self._lock:
            stale = [
                host
                for host, seen in self._last_seen.items()
                if self._cycle - seen >= max_missed_cycles
            ]
            for host in stale:
                del self._versions[host]
                del self._last_seen[host]
        if stale:
            log.info("cache_pruned", removed=len(stale), cycle=self._cycle)
        return len(stale)

    async def size(self) -> int:
        async with self._lock:
            return len(self._versions)
