"""Sidecar metafiles for files that cannot carry marker comments.

A file ``foo.json`` is tracked by ``foo.json.imosid.toml`` next to it:

    hash = "9F86D081884C7D659A2FEAA0C55AD015A3BF4F1B2B0B822CD15D6C15B0F00A08"
    parent = "foo.json"
    source = "/home/user/dotfiles/foo.json"
    permissions = 644
    imosidversion = "0.1.0"
    syntaxversion = 0

The hash covers the whole parent file instead of individual sections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import tomli_w

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib

from imosid import __version__
from imosid.document.section import ChangeState, digest
from imosid.errors import DocumentReadError, DocumentWriteError, MetafileError
from imosid.paths import metafile_path

logger = logging.getLogger(__name__)

SYNTAX_VERSION = 0


@dataclass
class MetaFile:
    """Whole-file tracking data for ``parent``, stored in a sidecar."""

    path: Path
    hash: str
    parent: str
    content: bytes = b""
    target: str | None = None
    source: str | None = None
    permissions: int | None = None
    imosidversion: str = __version__
    syntaxversion: int = SYNTAX_VERSION
    modified: bool = False

    @classmethod
    def load(cls, path: Path | str, content: bytes) -> MetaFile:
        """Read the sidecar at ``path`` for a parent whose bytes are ``content``.

        Raises:
            MetafileError: If the TOML is invalid or ``hash``/``parent`` are missing.
        """
        path = Path(path)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise MetafileError(f"cannot read metafile {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise MetafileError(f"metafile {path} is not valid TOML: {e}") from e

        hash_value = data.get("hash")
        parent = data.get("parent")
        if not isinstance(hash_value, str) or not isinstance(parent, str):
            raise MetafileError(f"metafile {path} must define string keys 'hash' and 'parent'")

        metafile = cls(path=path, hash=hash_value, parent=parent, content=content)

        if isinstance(data.get("target"), str):
            metafile.target = data["target"]
        if isinstance(data.get("source"), str):
            metafile.source = data["source"]
        permissions = data.get("permissions")
        if isinstance(permissions, int) and not isinstance(permissions, bool):
            metafile.permissions = permissions
        if isinstance(data.get("imosidversion"), str):
            metafile.imosidversion = data["imosidversion"]
        syntaxversion = data.get("syntaxversion")
        if isinstance(syntaxversion, int) and not isinstance(syntaxversion, bool):
            metafile.syntaxversion = syntaxversion

        metafile.finalize()
        return metafile

    @classmethod
    def for_file(cls, parent_path: Path | str) -> MetaFile:
        """Return the metafile tracking ``parent_path``.

        An existing sidecar is loaded as-is. Otherwise a new one is created
        with the current content as its baseline and written to disk.
        """
        parent_path = Path(parent_path)
        try:
            content = parent_path.read_bytes()
        except OSError as e:
            raise DocumentReadError(f"cannot read {parent_path}: {e}") from e
        sidecar = metafile_path(parent_path)
        if sidecar.is_file():
            return cls.load(sidecar, content)

        metafile = cls(path=sidecar, hash="", parent=parent_path.name, content=content)
        metafile.compile()
        metafile.write()
        logger.info("created metafile %s", sidecar)
        return metafile

    @property
    def content_hash(self) -> str:
        return digest(self.content)

    @property
    def parent_path(self) -> Path:
        return self.path.parent / self.parent

    def finalize(self) -> None:
        self.modified = self.hash != self.content_hash

    def compile(self) -> ChangeState:
        """Accept the current content unconditionally."""
        current = self.content_hash
        self.modified = False
        if self.hash == current:
            return ChangeState.UNCHANGED
        self.hash = current
        return ChangeState.CHANGED

    def to_dict(self) -> dict:
        data: dict = {"hash": self.hash, "parent": self.parent}
        if self.target is not None:
            data["target"] = self.target
        if self.source is not None:
            data["source"] = self.source
        if self.permissions is not None:
            data["permissions"] = self.permissions
        data["imosidversion"] = self.imosidversion
        data["syntaxversion"] = self.syntaxversion
        return data

    def serialize(self) -> str:
        return tomli_w.dumps(self.to_dict())

    def write(self) -> None:
        """Write the sidecar to :attr:`path`."""
        try:
            self.path.write_text(self.serialize(), encoding="utf-8")
        except OSError as e:
            raise DocumentWriteError(f"could not write metafile {self.path}: {e}") from e

    def report(self) -> str:
        status = "modified" if self.modified else "unmodified"
        return f"metafile hash: {self.hash}\n{status}"
