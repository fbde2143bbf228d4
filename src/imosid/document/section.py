"""Section model: tracked (named) and untracked (anonymous) line ranges."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Union

from imosid.errors import SectionError
from imosid.markers import MarkerKind
from imosid.markers.commentmap import CommentMap
from imosid.markers.parser import format_marker


class ChangeState(Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    def __bool__(self) -> bool:
        return self is ChangeState.CHANGED


def digest(content: str | bytes) -> str:
    """Upper-hex SHA-256 of ``content`` (str is encoded as UTF-8)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest().upper()


@dataclass
class AnonymousSection:
    """Lines not tracked by any marker pair."""

    startline: int
    endline: int
    content: str = ""

    def append_line(self, text: str) -> None:
        self.content += text + "\n"

    def finalize(self) -> None:
        pass

    def compile(self) -> ChangeState:
        return ChangeState.UNCHANGED

    @property
    def modified(self) -> bool:
        return False

    def contains(self, line: int) -> bool:
        return self.startline <= line <= self.endline

    def serialize(self, comment_prefix: str) -> str:
        return self.content

    def report(self) -> str | None:
        return None


@dataclass
class NamedSection:
    """A tracked section.

    ``hash`` is the digest of the current content; ``targethash`` is the
    digest last accepted by :meth:`compile`. They differ exactly when the
    section has been edited since.
    """

    startline: int
    endline: int
    name: str
    targethash: str
    source: str | None = None
    content: str = ""
    hash: str = ""

    @classmethod
    def from_comment_map(cls, name: str, comment_map: CommentMap) -> NamedSection:
        """Build the section ``name`` from its validated markers.

        Raises:
            SectionError: If begin, end or hash is missing, or end precedes begin.
        """
        begin = comment_map.get(name, MarkerKind.BEGIN)
        end = comment_map.get(name, MarkerKind.END)
        hash_marker = comment_map.get(name, MarkerKind.HASH)
        if begin is None or end is None or hash_marker is None or not hash_marker.argument:
            raise SectionError(f"section {name!r} lacks begin, end or hash markers")
        if end.line < begin.line:
            raise SectionError(
                f"section {name!r} ends on line {end.line} before it begins on line {begin.line}"
            )
        source = comment_map.get(name, MarkerKind.SOURCE)
        return cls(
            startline=begin.line,
            endline=end.line,
            name=name,
            targethash=hash_marker.argument,
            source=source.argument if source else None,
        )

    def append_line(self, text: str) -> None:
        self.content += text + "\n"

    def finalize(self) -> None:
        self.hash = digest(self.content)

    def compile(self) -> ChangeState:
        """Accept the current content as the section's baseline."""
        if self.hash == self.targethash:
            return ChangeState.UNCHANGED
        self.targethash = self.hash
        return ChangeState.CHANGED

    @property
    def modified(self) -> bool:
        return self.hash != self.targethash

    def line_count(self) -> int:
        """Number of lines :meth:`serialize` produces."""
        markers = 4 if self.source is not None else 3
        return markers + self.content.count("\n")

    def contains(self, line: int) -> bool:
        return self.startline <= line <= self.endline

    def serialize(self, comment_prefix: str) -> str:
        # The hash marker carries targethash so an uncompiled edit stays
        # detectable after the file is rewritten.
        parts = [
            format_marker(comment_prefix, MarkerKind.BEGIN, self.name),
            format_marker(comment_prefix, MarkerKind.HASH, self.name, self.targethash),
        ]
        if self.source is not None:
            parts.append(format_marker(comment_prefix, MarkerKind.SOURCE, self.name, self.source))
        parts.append(self.content)
        parts.append(format_marker(comment_prefix, MarkerKind.END, self.name))
        return "".join(parts)

    def report(self) -> str:
        status = "modified" if self.modified else "ok"
        line = f"{self.startline}-{self.endline}: {self.name} | {status}"
        if self.source:
            line += f" | source {self.source}"
        return line


Section = Union[NamedSection, AnonymousSection]
