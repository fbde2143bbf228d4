"""Build a Document from raw file text.

The assembly process:
1. Parse every line; markers go to the comment map, the rest is content
2. Drop sections with missing or duplicate markers
3. Build one named section per surviving name, sorted by start line
4. Drop both sections of any overlapping pair
5. Fill the gaps with anonymous sections so every line is covered
6. Distribute content lines into their sections and hash them
"""

from __future__ import annotations

import logging
from pathlib import Path

from imosid.document.model import Document
from imosid.document.section import AnonymousSection, NamedSection, Section
from imosid.errors import SectionError
from imosid.markers import Marker, MarkerKind
from imosid.markers.commentmap import CommentMap
from imosid.markers.parser import parse_marker

logger = logging.getLogger(__name__)

# Width of the prefix dropped from a permissions argument before parsing
PERMISSION_PREFIX_WIDTH = 3


def split_lines(text: str) -> tuple[list[str], bool]:
    """Split file text into lines.

    Returns (lines, final_newline). Only ``\\n`` separates lines, so any
    ``\\r`` stays part of the line and survives a round trip.
    """
    if not text:
        return [], True
    final_newline = text.endswith("\n")
    lines = text.split("\n")
    if final_newline:
        lines.pop()
    return lines, final_newline


def parse_permissions(argument: str) -> int | None:
    """Decode a ``permissions`` marker argument.

    The first characters are a fixed-width prefix; the remainder is the
    stored permission number.
    """
    try:
        return int(argument[PERMISSION_PREFIX_WIDTH:])
    except ValueError:
        return None


def _drop_overlapping(sections: list[NamedSection]) -> list[NamedSection]:
    """Remove both members of every overlapping adjacent pair."""
    kept = []
    i = 0
    while i < len(sections):
        current = sections[i]
        if i + 1 < len(sections) and sections[i + 1].startline < current.endline:
            following = sections[i + 1]
            logger.warning(
                "sections %r (%d-%d) and %r (%d-%d) overlap, ignoring both",
                current.name, current.startline, current.endline,
                following.name, following.startline, following.endline,
            )
            i += 2
            continue
        kept.append(current)
        i += 1
    return kept


def _fill_gaps(named: list[NamedSection], last_line: int) -> list[Section]:
    """Cover every line in ``[1, last_line]`` not owned by a named section."""
    if not named:
        return [AnonymousSection(1, last_line)] if last_line >= 1 else []

    sections: list[Section] = []
    cursor = 1
    for section in named:
        if cursor < section.startline:
            sections.append(AnonymousSection(cursor, section.startline - 1))
        cursor = section.endline + 1
    if cursor <= last_line:
        sections.append(AnonymousSection(cursor, last_line))

    sections.extend(named)
    sections.sort(key=lambda s: s.startline)
    return sections


def assemble(
    lines: list[str],
    comment_prefix: str,
    path: Path | None = None,
    final_newline: bool = True,
) -> Document:
    """Partition ``lines`` into sections."""
    doc = Document(comment_prefix=comment_prefix, path=path, final_newline=final_newline)
    comment_map = CommentMap()
    content_lines: list[tuple[int, str]] = []

    for number, line in enumerate(lines, start=1):
        marker = parse_marker(line, comment_prefix, number)
        if marker is None:
            content_lines.append((number, line))
            continue
        doc.markers.append(marker)
        if marker.is_file_scoped:
            _apply_file_marker(doc, marker)
        else:
            comment_map.push(marker)

    comment_map.remove_incomplete()

    named: list[NamedSection] = []
    for name in comment_map.get_sections():
        try:
            named.append(NamedSection.from_comment_map(name, comment_map))
        except SectionError as e:
            logger.warning("%s", e)

    named.sort(key=lambda s: s.startline)
    named = _drop_overlapping(named)
    doc.sections = _fill_gaps(named, len(lines))

    _distribute(doc.sections, content_lines)
    return doc


def _apply_file_marker(doc: Document, marker: Marker) -> None:
    if marker.kind is MarkerKind.TARGET:
        if doc.target_path is None:
            doc.target_path = marker.argument
    elif marker.kind is MarkerKind.PERMISSION:
        if doc.permissions_arg is None and marker.argument is not None:
            doc.permissions_arg = marker.argument
            doc.permissions = parse_permissions(marker.argument)
            if doc.permissions is None:
                logger.warning(
                    "cannot decode permissions %r on line %d", marker.argument, marker.line,
                )
    else:
        logger.debug("ignoring file-scoped %s marker on line %d", marker.kind.keyword, marker.line)


def _distribute(sections: list[Section], content_lines: list[tuple[int, str]]) -> None:
    """Append each content line to the section covering it, then hash."""
    index = 0
    for number, text in content_lines:
        while index < len(sections) and sections[index].endline < number:
            index += 1
        if index < len(sections) and sections[index].contains(number):
            sections[index].append_line(text)
    for section in sections:
        section.finalize()


def parse_text(text: str, comment_prefix: str, path: Path | None = None) -> Document:
    """Assemble a Document directly from file text."""
    lines, final_newline = split_lines(text)
    return assemble(lines, comment_prefix, path=path, final_newline=final_newline)
