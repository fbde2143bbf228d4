"""The Document: a file partitioned into sections, or backed by a metafile."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from imosid.document.metafile import MetaFile
from imosid.document.section import AnonymousSection, ChangeState, NamedSection, Section
from imosid.markers import ALL_SECTION, Marker, MarkerKind
from imosid.markers.parser import format_marker

HASHBANG_RE = re.compile(r"^#!/.*")


@dataclass
class Document:
    """A parsed tracked file.

    Comment-based documents hold ``sections`` covering every line of the
    file in order. Metafile-backed documents hold ``metafile`` instead and
    no sections.
    """

    comment_prefix: str = "#"
    sections: list[Section] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    path: Path | None = None
    target_path: str | None = None
    permissions: int | None = None
    permissions_arg: str | None = None
    metafile: MetaFile | None = None
    read_only: bool = False
    final_newline: bool = True

    @classmethod
    def from_metafile(
        cls, metafile: MetaFile, path: Path | None = None, read_only: bool = False,
    ) -> Document:
        return cls(
            comment_prefix="",
            path=path,
            target_path=metafile.target,
            permissions=metafile.permissions,
            metafile=metafile,
            read_only=read_only,
        )

    @property
    def name(self) -> str:
        return str(self.path) if self.path else "<memory>"

    @property
    def uses_metafile(self) -> bool:
        return self.metafile is not None

    def named_sections(self) -> list[NamedSection]:
        return [s for s in self.sections if isinstance(s, NamedSection)]

    def section_names(self) -> list[str]:
        return [s.name for s in self.named_sections()]

    def get_section(self, name: str) -> NamedSection | None:
        for section in self.named_sections():
            if section.name == name:
                return section
        return None

    def has_section(self, name: str) -> bool:
        return self.get_section(name) is not None

    @property
    def is_managed(self) -> bool:
        """True if imosid tracks anything in this file."""
        return self.uses_metafile or bool(self.named_sections())

    @property
    def modified(self) -> bool:
        if self.metafile is not None:
            return self.metafile.modified
        return any(s.modified for s in self.named_sections())

    def compile(self) -> ChangeState:
        """Accept the current content of every section (or the whole file)."""
        if self.metafile is not None:
            return self.metafile.compile()
        changed = False
        for section in self.sections:
            changed = bool(section.compile()) or changed
        return ChangeState.CHANGED if changed else ChangeState.UNCHANGED

    def delete_section(self, name: str) -> bool:
        """Turn section ``name`` into untracked content.

        The lines stay in the file; only the markers go away.
        """
        for index, section in enumerate(self.sections):
            if isinstance(section, NamedSection) and section.name == name:
                self.sections[index] = AnonymousSection(
                    section.startline, section.endline, section.content,
                )
                self.markers = [m for m in self.markers if m.section != name]
                return True
        return False

    def hashbang(self) -> str | None:
        """The ``#!`` line if it opens an untracked first section."""
        if not self.sections or not isinstance(self.sections[0], AnonymousSection):
            return None
        first_line = self.sections[0].content.split("\n", 1)[0]
        if HASHBANG_RE.match(first_line):
            return first_line
        return None

    def property_markers(self) -> str:
        """File-scoped markers, in canonical form."""
        out = ""
        if self.target_path is not None:
            out += format_marker(
                self.comment_prefix, MarkerKind.TARGET, ALL_SECTION, self.target_path,
            )
        if self.permissions_arg is not None:
            out += format_marker(
                self.comment_prefix, MarkerKind.PERMISSION, ALL_SECTION, self.permissions_arg,
            )
        return out

    def serialize(self) -> str:
        """Render the document back to file text."""
        if self.metafile is not None:
            return self.metafile.content.decode("utf-8", errors="replace")

        properties = self.property_markers()
        sections = self.sections
        hashbang = self.hashbang()
        if hashbang is not None:
            rest = sections[0].content[len(hashbang) + 1:]
            text = hashbang + "\n" + properties + rest
            sections = sections[1:]
        else:
            text = properties

        text += "".join(s.serialize(self.comment_prefix) for s in sections)
        if not self.final_newline and text.endswith("\n"):
            text = text[:-1]
        return text

    def report(self) -> str:
        """Human-readable summary of tracked sections and file properties."""
        lines = []
        if self.metafile is not None:
            lines.append(self.metafile.report())
        else:
            lines.append(f"comment syntax: {self.comment_prefix}")
            for section in self.named_sections():
                lines.append(section.report())
        if self.permissions is not None:
            lines.append(f"target permissions: {self.permissions}")
        if self.target_path is not None:
            lines.append(f"target: {self.target_path}")
        return "\n".join(lines)
