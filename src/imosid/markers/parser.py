"""Parse single lines into markers and render markers back to text."""

from __future__ import annotations

import logging
import re

from imosid.markers import ALL_SECTION, KEYWORDS, SENTINEL, Marker, MarkerKind

logger = logging.getLogger(__name__)

_PATTERN_CACHE: dict[str, re.Pattern] = {}


def _marker_pattern(comment_prefix: str) -> re.Pattern:
    pattern = _PATTERN_CACHE.get(comment_prefix)
    if pattern is None:
        pattern = re.compile(
            r"^\s*" + re.escape(comment_prefix) + r"\s*" + re.escape(SENTINEL) + r"\s*(.*)$"
        )
        _PATTERN_CACHE[comment_prefix] = pattern
    return pattern


def parse_marker(line: str, comment_prefix: str, line_number: int) -> Marker | None:
    """Try to read ``line`` as a marker comment.

    Returns None for ordinary content and for malformed markers; the latter
    are logged and the caller keeps the line as content. Never raises.
    """
    if not comment_prefix or not line.startswith(comment_prefix):
        return None

    match = _marker_pattern(comment_prefix).match(line)
    if not match:
        return None

    tokens = match.group(1).split()
    # needs at least a section and a keyword
    if len(tokens) < 2:
        return None

    section, keyword = tokens[0], tokens[1]
    argument = tokens[2] if len(tokens) > 2 else None

    kind = KEYWORDS.get(keyword)
    if kind is None:
        logger.warning("unknown marker keyword %r on line %d", keyword, line_number)
        return None

    if kind is MarkerKind.HASH and argument is None:
        logger.warning("missing hash value on line %d", line_number)
        return None

    if kind is MarkerKind.SOURCE and argument is None:
        logger.warning("missing source file argument on line %d", line_number)
        return None

    if kind in (MarkerKind.TARGET, MarkerKind.PERMISSION):
        if section != ALL_SECTION:
            logger.warning(
                "%s can only apply to the whole file (line %d)", kind.keyword, line_number
            )
            return None
        if argument is None:
            logger.warning("missing %s value on line %d", kind.keyword, line_number)
            return None
        if kind is MarkerKind.PERMISSION and not argument.isdigit():
            logger.warning("invalid permissions %r on line %d", argument, line_number)
            return None

    return Marker(line=line_number, section=section, kind=kind, argument=argument)


def format_marker(
    comment_prefix: str,
    kind: MarkerKind,
    section: str,
    argument: str | None = None,
) -> str:
    """Render a marker in canonical form, newline included."""
    suffix = f" {argument}" if argument is not None else ""
    return f"{comment_prefix}{SENTINEL} {section} {kind.keyword}{suffix}\n"
