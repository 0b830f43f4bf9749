"""Pagination discovery for the server listing."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from serverversions.protocols import FetcherProtocol

log = structlog.get_logger()

# No numeric pagination link on the root page: only the root page exists.
UNKNOWN_LAST_PAGE = -1


def last_page_from_document(document: BeautifulSoup, selector: str) -> int:
    """Return the largest integer label among the pagination links.

    Labels that are not integers ("next", "»") are skipped.
    """
    last_page = UNKNOWN_LAST_PAGE
    for link in document.select(selector):
        try:
            page = int(link.get_text(strip=True))
        except ValueError:
            continue
        last_page = max(last_page, page)
    return last_page


async def resolve_pagination(
    fetcher: FetcherProtocol,
    root_url: str,
    selector: str = ".pagination li a",
) -> tuple[int, BeautifulSoup]:
    """Fetch the listing root; return the highest page number and the root document.

    The document is handed back so a listing without pagination can be parsed
    from the root page itself. NetworkError from the fetch propagates.
    """
    document = await fetcher.fetch(root_url)
    last_page = last_page_from_document(document, selector)
    log.debug("pagination_resolved", url=root_url, last_page=last_page)
    return last_page, document


async def resolve_last_page(
    fetcher: FetcherProtocol,
    root_url: str,
    selector: str = ".pagination li a",
) -> int:
    """Fetch the listing root and return the highest page number on it."""
    last_page, _ = await resolve_pagination(fetcher, root_url, selector)
    return last_page
