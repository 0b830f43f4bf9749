from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ListingEntry:
    """One ``.server`` block as scraped, before version validation."""

    host: str
    status_text: str
    page_url: str


@dataclass
class RefreshReport:
    """Outcome of one full pass over the listing."""

    last_page: int = -1
    pages_scanned: int = 0
    entries_merged: int = 0
    failed_pages: list[int] = field(default_factory=list)
    pruned: int = 0
    aborted: bool = False
    cancelled: bool = False

    @property
    def clean(self) -> bool:
        """Every page was fetched and parsed; only then can a missing host be trusted."""
        return not (self.aborted or self.cancelled or self.failed_pages)
