"""In-band marker comments.

A marker is a comment line carrying the ``...`` sentinel:

    <prefix>... <section> <keyword> [argument]

Markers scoped to the pseudo-section ``all`` describe the whole file
(``target``, ``permissions``); every other section name tracks a range of
lines between its ``begin`` and ``end`` markers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ALL_SECTION = "all"
SENTINEL = "..."


class MarkerKind(Enum):
    BEGIN = "begin"
    END = "end"
    SOURCE = "source"
    TARGET = "target"
    HASH = "hash"
    PERMISSION = "permissions"

    @property
    def keyword(self) -> str:
        """Canonical keyword written back to files."""
        return self.value


# Keyword -> kind, aliases included
KEYWORDS: dict[str, MarkerKind] = {
    "begin": MarkerKind.BEGIN,
    "start": MarkerKind.BEGIN,
    "end": MarkerKind.END,
    "stop": MarkerKind.END,
    "hash": MarkerKind.HASH,
    "source": MarkerKind.SOURCE,
    "permissions": MarkerKind.PERMISSION,
    "target": MarkerKind.TARGET,
}

# Kinds that must appear exactly once for a tracked section
REQUIRED_KINDS = frozenset({MarkerKind.BEGIN, MarkerKind.END, MarkerKind.HASH})


@dataclass(frozen=True)
class Marker:
    """A recognized marker comment."""

    line: int
    section: str
    kind: MarkerKind
    argument: str | None = None

    @property
    def is_file_scoped(self) -> bool:
        return self.section == ALL_SECTION
