from __future__ import annotations

from dataclasses import dataclass, field

import semver


@dataclass(frozen=True)
class ServerVersion:
    """A version as the listing advertised it.

    ``text`` is kept exactly as validated, so ``"1.8"`` and ``"1.2.3-rc.1"``
    read back unchanged. ``parsed`` is the semver value; it fills a missing
    minor or patch with zero and takes no part in equality.
    """

    text: str
    parsed: semver.Version = field(compare=False, repr=False)

    @classmethod
    def parse(cls, text: str) -> ServerVersion:
        """Raises ValueError when ``text`` is not a semantic version."""
        return cls(text, semver.Version.parse(text, optional_minor_and_patch=True))

    def __str__(self) -> str:
        return self.text
