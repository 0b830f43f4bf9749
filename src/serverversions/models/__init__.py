from __future__ import annotations

from serverversions.models.listing import ListingEntry, RefreshReport
from serverversions.models.tools import GetServerVersionInput, GetServerVersionOutput
from serverversions.models.version import ServerVersion

__all__ = [
    # listing
    "ListingEntry",
    "RefreshReport",
    # tools
    "GetServerVersionInput",
    "GetServerVersionOutput",
    # version
    "ServerVersion",
]
