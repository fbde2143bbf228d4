"""Top-level operations: compile, apply, update and check.

Every operation reads each file once, decides, and writes back only when
something changed. Bulk operations walk a directory serially and collect
per-file failures instead of stopping.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from imosid.config import ImosidConfig
from imosid.document.metafile import MetaFile
from imosid.document.model import Document
from imosid.errors import DocumentWriteError, ImosidError
from imosid.paths import expand_tilde, metafile_path
from imosid.reconcile import apply_document, apply_section, can_apply
from imosid.storage import create_file, read_document, write_document, write_permissions
from imosid.walker import walk_files

logger = logging.getLogger(__name__)


class SourceCache:
    """Source path -> parsed Document, for the duration of one invocation.

    Entries are only ever added, so a source referenced by several sections
    is read once.
    """

    def __init__(
        self,
        comment_prefix: str | None = None,
        config: ImosidConfig | None = None,
    ) -> None:
        self.comment_prefix = comment_prefix
        self.config = config
        self._docs: dict[Path, Document] = {}

    def get(self, path: Path | str) -> Document:
        key = expand_tilde(path).absolute()
        doc = self._docs.get(key)
        if doc is None:
            doc = read_document(key, self.comment_prefix, self.config)
            self._docs[key] = doc
        return doc

    def __contains__(self, path: Path | str) -> bool:
        return expand_tilde(path).absolute() in self._docs

    def __len__(self) -> int:
        return len(self._docs)


def resolve_source(source: str, declared_in: Document) -> Path:
    """Resolve a ``source`` reference relative to the file declaring it."""
    path = expand_tilde(source)
    if not path.is_absolute() and declared_in.path is not None:
        path = declared_in.path.parent / path
    return path


def compile_file(
    path: Path | str,
    use_metafile: bool = False,
    comment_prefix: str | None = None,
    config: ImosidConfig | None = None,
) -> bool:
    """Accept the current content of ``path`` as its baseline.

    Returns True if any hash changed and the file was rewritten.
    """
    if use_metafile:
        real = expand_tilde(path)
        created = not metafile_path(real).is_file()
        metafile = MetaFile.for_file(real)
        changed = bool(metafile.compile()) or created
        if changed and not created:
            metafile.write()
        return changed

    doc = read_document(path, comment_prefix, config)
    if not doc.compile():
        return False
    write_document(doc)
    return True


def _create_from_comments(source: Document, target_path: Path) -> None:
    # The created file does not inherit the source's own target marker.
    doc = Document(
        comment_prefix=source.comment_prefix,
        sections=copy.deepcopy(source.sections),
        markers=list(source.markers),
        path=target_path,
        permissions=source.permissions,
        permissions_arg=source.permissions_arg,
        final_newline=source.final_newline,
    )
    write_document(doc)


def _create_from_metafile(source: Document, target_path: Path) -> None:
    content = source.metafile.content
    try:
        target_path.write_bytes(content)
    except OSError as e:
        raise DocumentWriteError(f"could not write to file {target_path}: {e}") from e
    metafile = MetaFile(
        path=metafile_path(target_path),
        hash="",
        parent=target_path.name,
        content=content,
        source=str(source.path.resolve()) if source.path else source.metafile.source,
        permissions=source.metafile.permissions,
    )
    metafile.compile()
    metafile.write()
    if metafile.permissions is not None:
        write_permissions(target_path, metafile.permissions)


def apply_file(
    source: Document,
    dry_run: bool = False,
    config: ImosidConfig | None = None,
) -> str:
    """Apply ``source`` to the file named by its ``target`` property.

    Returns "created", "updated", "unchanged" or "skipped".
    """
    if source.target_path is None:
        logger.warning("%s has no target file", source.name)
        return "skipped"

    target_path = expand_tilde(source.target_path)

    if not target_path.is_file():
        if source.uses_metafile and source.metafile.modified:
            logger.warning("%s modified, skipping", source.name)
            return "skipped"
        if not source.is_managed:
            logger.warning("%s is unmanaged, cannot apply", source.name)
            return "skipped"
        if dry_run:
            return "created"
        create_file(target_path)
        if source.uses_metafile:
            _create_from_metafile(source, target_path)
        else:
            _create_from_comments(source, target_path)
        logger.info("applied %s to create %s", source.name, target_path)
        return "created"

    prefix = None if source.uses_metafile else source.comment_prefix
    target = read_document(target_path, prefix, config)
    before = target.serialize()
    if not apply_document(target, source):
        return "unchanged"
    if not target.uses_metafile and target.serialize() == before:
        return "unchanged"
    if not dry_run:
        write_document(target)
    logger.info("applied %s to %s", source.name, target_path)
    return "updated"


def apply_all(
    root: Path | str,
    dry_run: bool = False,
    comment_prefix: str | None = None,
    config: ImosidConfig | None = None,
) -> dict[str, Any]:
    """Apply every file under ``root`` that names a target."""
    created = []
    updated = []
    skipped = []
    errors = []

    for path in walk_files(expand_tilde(root)):
        try:
            source = read_document(path, comment_prefix, config)
            if source.target_path is None:
                continue
            action = apply_file(source, dry_run=dry_run, config=config)
        except ImosidError as e:
            errors.append({"path": str(path), "error": str(e)})
            continue
        if action == "created":
            created.append(str(path))
        elif action == "updated":
            updated.append(str(path))
        else:
            skipped.append(str(path))

    return {
        "created": created,
        "updated": updated,
        "skipped": skipped,
        "errors": errors,
        "dry_run": dry_run,
    }


def _apply_named(target: Document, source: Document, names: list[str]) -> bool:
    if not can_apply(target, source):
        return False
    changed = False
    for name in names:
        candidate = source.get_section(name)
        if candidate is None:
            logger.warning("%s has no section %r", source.name, name)
            continue
        changed = apply_section(target, copy.deepcopy(candidate)) or changed
    return changed


def update_document(
    target: Document,
    cache: SourceCache,
    sections: list[str] | None = None,
    source: Document | None = None,
) -> bool:
    """Pull updates into ``target`` in place.

    With ``source``, that document is applied directly. Otherwise each named
    section with a ``source`` reference pulls the same-named section from
    that file, and a metafile target pulls its whole source file.
    ``sections`` restricts a comment-based update to the given names.

    Returns True if ``target`` changed.
    """
    if source is not None:
        if sections and not target.uses_metafile:
            return _apply_named(target, source, sections)
        return apply_document(target, source)

    if target.uses_metafile:
        metafile = target.metafile
        if metafile.modified:
            logger.warning("%s modified, skipping", target.name)
            return False
        if not metafile.source:
            logger.info("%s has no source", target.name)
            return False
        try:
            source_doc = cache.get(resolve_source(metafile.source, target))
        except ImosidError as e:
            logger.warning("failed to apply metafile source %s: %s", metafile.source, e)
            return False
        return apply_document(target, source_doc)

    changed = False
    for section in target.named_sections():
        if section.source is None:
            continue
        if sections and section.name not in sections:
            continue
        try:
            source_doc = cache.get(resolve_source(section.source, target))
        except ImosidError as e:
            logger.warning("could not open source file %s: %s", section.source, e)
            continue
        candidate = source_doc.get_section(section.name)
        if candidate is None:
            logger.warning("%s has no section %r", source_doc.name, section.name)
            continue
        if candidate.content == section.content and candidate.targethash == section.targethash:
            continue
        changed = apply_section(target, copy.deepcopy(candidate)) or changed
    return changed


def check_tree(
    root: Path | str,
    comment_prefix: str | None = None,
    config: ImosidConfig | None = None,
) -> dict[str, Any]:
    """Find modified and unmanaged files under ``root``."""
    modified = []
    unmanaged = []
    errors = []
    checked = 0

    for path in walk_files(expand_tilde(root)):
        try:
            doc = read_document(path, comment_prefix, config)
        except ImosidError as e:
            errors.append({"path": str(path), "error": str(e)})
            continue
        checked += 1
        if doc.modified:
            modified.append(str(path))
        if not doc.is_managed:
            unmanaged.append(str(path))

    return {
        "checked": checked,
        "modified": modified,
        "unmanaged": unmanaged,
        "errors": errors,
    }
