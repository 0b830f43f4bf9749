"""Listing page parser.

Turns one listing page into a ``host -> ServerVersion`` mapping. Each ``.server``
block carries the host label and a status blob such as
``"онлайн1.20.1версия"``: an online/offline marker, the version, then the
version marker. The candidate between the markers is checked against semver
syntax before ``semver`` parses it, because the site is inconsistent about
what it puts there.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Literal

import structlog

from serverversions.config import MarkerSettings, SelectorSettings
from serverversions.errors import ParseError
from serverversions.models.listing import ListingEntry
from serverversions.models.version import ServerVersion

if TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

log = structlog.get_logger()

InvalidEntryPolicy = Literal["abort_page", "skip_entry"]

_NUM = r"(?:0|[1-9][0-9]*)"
_PRE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_IDENT = r"[0-9A-Za-z-]+"

# vMAJOR, vMAJOR.MINOR or vMAJOR.MINOR.PATCH[-pre][+build], no leading zeros.
# Pre-release and build suffixes are only allowed on the full three-part form.
_SEMVER_RE = re.compile(
    rf"v{_NUM}"
    rf"(?:\.{_NUM}"
    rf"(?:\.{_NUM}"
    rf"(?:-{_PRE_IDENT}(?:\.{_PRE_IDENT})*)?"
    rf"(?:\+{_BUILD_IDENT}(?:\.{_BUILD_IDENT})*)?"
    r")?)?"
)


def is_valid_semver(candidate: str) -> bool:
    """Check ``candidate`` (without the leading ``v``) against semver syntax."""
    return _SEMVER_RE.fullmatch("v" + candidate) is not None


def parse_version(candidate: str) -> ServerVersion:
    """Validate then parse a version candidate. Raises ParseError."""
    if not is_valid_semver(candidate):
        raise ParseError(f"invalid semver format got version {candidate!r}")
    try:
        return ServerVersion.parse(candidate)
    except ValueError as exc:
        raise ParseError(f"invalid semver format {exc} got version {candidate!r}") from exc


def _joined_text(node: Tag, selector: str) -> str:
    return "".join(el.get_text() for el in node.select(selector))


def extract_entries(
    document: BeautifulSoup,
    selectors: SelectorSettings,
    page_url: str = "",
) -> list[ListingEntry]:
    """Collect the raw listing entries on a page, skipping blank host labels."""
    entries: list[ListingEntry] = []
    for node in document.select(selectors.entry):
        host = _joined_text(node, selectors.host).strip()
        if not host:
            continue
        entries.append(
            ListingEntry(
                host=host,
                status_text=_joined_text(node, selectors.status),
                page_url=page_url,
            )
        )
    return entries


def version_candidate(entry: ListingEntry, markers: MarkerSettings) -> str:
    """Cut the version text out of an entry's status blob.

    The online marker wins when both are present. Raises ParseError when
    neither marker is found.
    """
    status = entry.status_text
    for marker in (markers.online, markers.offline):
        parts = status.split(marker)
        if len(parts) > 1:
            return parts[1].split(markers.version)[0].strip()
    raise ParseError(f"field version not found for server {entry.host}")


def parse_listing(
    document: BeautifulSoup,
    markers: MarkerSettings | None = None,
    *,
    selectors: SelectorSettings | None = None,
    policy: InvalidEntryPolicy = "abort_page",
    page_url: str = "",
) -> dict[str, ServerVersion]:
    """Parse one listing page into ``{host: ServerVersion}``.

    With ``policy="abort_page"`` the first malformed entry fails the whole
    page and nothing from it is returned. With ``policy="skip_entry"`` the
    malformed entry is logged and the remaining entries are kept.
    Duplicate hosts on a page overwrite each other, last one wins.
    """
    markers = markers or MarkerSettings()
    selectors = selectors or SelectorSettings()

    versions: dict[str, ServerVersion] = {}
    for entry in extract_entries(document, selectors, page_url):
        try:
            versions[entry.host] = parse_version(version_candidate(entry, markers))
        except ParseError as exc:
            if policy == "abort_page":
                raise
            log.warning("listing_entry_skipped", url=page_url, host=entry.host, reason=exc.message)
    return versions
