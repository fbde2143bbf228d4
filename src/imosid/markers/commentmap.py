"""Group markers by section and drop sections that cannot be tracked."""

from __future__ import annotations

import logging

from imosid.markers import ALL_SECTION, REQUIRED_KINDS, Marker, MarkerKind

logger = logging.getLogger(__name__)


class CommentMap:
    """Section name -> markers, in the order they were pushed."""

    def __init__(self) -> None:
        self._map: dict[str, list[Marker]] = {}

    def push(self, marker: Marker) -> None:
        self._map.setdefault(marker.section, []).append(marker)

    def remove_incomplete(self) -> list[str]:
        """Drop every section with a repeated marker kind or a missing
        begin, end or hash marker. The ``all`` pseudo-section is exempt.

        Returns the names of the removed sections.
        """
        removed = []
        for section, markers in self._map.items():
            if section == ALL_SECTION:
                continue
            kinds = [m.kind for m in markers]
            seen = set(kinds)
            if len(seen) != len(kinds):
                logger.warning("section %r has duplicate markers, ignoring it", section)
                removed.append(section)
            elif not REQUIRED_KINDS <= seen:
                missing = sorted(k.keyword for k in REQUIRED_KINDS - seen)
                logger.warning(
                    "section %r is incomplete (missing %s), ignoring it",
                    section, ", ".join(missing),
                )
                removed.append(section)

        for section in removed:
            self.remove_section(section)
        return removed

    def remove_section(self, section: str) -> None:
        self._map.pop(section, None)

    def get_sections(self) -> list[str]:
        return [name for name in self._map if name != ALL_SECTION]

    def get_markers(self, section: str) -> list[Marker]:
        return list(self._map.get(section, []))

    def get(self, section: str, kind: MarkerKind) -> Marker | None:
        for marker in self._map.get(section, []):
            if marker.kind is kind:
                return marker
        return None

    def __contains__(self, section: str) -> bool:
        return section in self._map

    def __len__(self) -> int:
        return len(self._map)
