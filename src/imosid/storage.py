"""Read and write tracked files by path.

Content is read fully once and no file handle outlives a call; writes
recreate the file.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from imosid.config import ImosidConfig
from imosid.detect import detect_comment_prefix
from imosid.document.assembler import parse_text
from imosid.document.metafile import MetaFile
from imosid.document.model import Document
from imosid.errors import DocumentReadError, DocumentWriteError
from imosid.paths import expand_tilde, metafile_path

logger = logging.getLogger(__name__)

# Added to the stored permissions before the octal conversion
PERMISSION_OFFSET = 1000000


def _read_bytes(path: Path) -> tuple[bytes, bool]:
    """Read ``path``, returning (content, read_only)."""
    try:
        with open(path, "r+b") as f:
            return f.read(), False
    except PermissionError:
        pass
    except OSError as e:
        raise DocumentReadError(f"cannot read {path}: {e}") from e

    # open read-only if writing is not permitted
    try:
        with open(path, "rb") as f:
            return f.read(), True
    except OSError as e:
        raise DocumentReadError(f"cannot read {path}: {e}") from e


def read_document(
    path: Path | str,
    comment_prefix: str | None = None,
    config: ImosidConfig | None = None,
) -> Document:
    """Load a tracked file.

    Uses the sidecar metafile when one exists; otherwise parses marker
    comments, detecting the comment prefix unless one is given.

    Raises:
        DocumentReadError: If the file cannot be read or is not UTF-8 text.
        MetafileError: If the sidecar is malformed.
    """
    path = expand_tilde(path)
    content, read_only = _read_bytes(path)
    if read_only:
        logger.info("%s is read-only", path)

    sidecar = metafile_path(path)
    if sidecar.is_file():
        metafile = MetaFile.load(sidecar, content)
        return Document.from_metafile(metafile, path=path, read_only=read_only)

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DocumentReadError(f"{path} is not UTF-8 text: {e}") from e

    if comment_prefix is None:
        first_line = text.split("\n", 1)[0]
        comment_prefix = detect_comment_prefix(path, first_line, config)

    doc = parse_text(text, comment_prefix, path=path)
    doc.read_only = read_only
    return doc


def permission_mode(permissions: int) -> int:
    """Turn a stored permissions value into file mode bits."""
    return stat.S_IMODE(int(str(permissions + PERMISSION_OFFSET), 8))


def write_permissions(path: Path, permissions: int) -> None:
    try:
        mode = permission_mode(permissions)
    except ValueError as e:
        raise DocumentWriteError(f"invalid permissions {permissions} for {path}") from e
    try:
        os.chmod(path, mode)
    except OSError as e:
        raise DocumentWriteError(f"failed to set permissions on {path}: {e}") from e
    logger.info("set permissions of %s to %o", path, mode)


def write_document(doc: Document, path: Path | str | None = None) -> Path:
    """Write ``doc`` back to disk, plus its sidecar and permissions.

    Raises:
        DocumentWriteError: If the document is read-only or the write fails.
    """
    target = expand_tilde(path) if path is not None else doc.path
    if target is None:
        raise DocumentWriteError("document has no path to write to")
    if doc.read_only and path is None:
        raise DocumentWriteError(f"{target} was opened read-only")

    try:
        if doc.metafile is not None:
            target.write_bytes(doc.metafile.content)
            doc.metafile.write()
        else:
            target.write_text(doc.serialize(), encoding="utf-8")
    except OSError as e:
        raise DocumentWriteError(f"could not write to file {target}: {e}") from e

    if doc.permissions is not None:
        write_permissions(target, doc.permissions)
    return target


def create_file(path: Path | str) -> bool:
    """Create ``path`` and its parent directories.

    Returns False if the file already exists.
    """
    real = expand_tilde(path)
    if real.is_file():
        return False
    try:
        real.parent.mkdir(parents=True, exist_ok=True)
        real.touch()
    except OSError as e:
        raise DocumentWriteError(f"could not create {real}: {e}") from e
    return True
