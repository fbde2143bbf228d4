"""Reconciliation: decide what to copy from a source document into a target.

Nothing local is ever overwritten. A modified metafile on either side blocks
the copy. A modified comment-based target only takes the sections that
match by name, and a modified (uncompiled) source section is never taken.
"""

from __future__ import annotations

import copy
import logging

from imosid.document.model import Document
from imosid.document.section import NamedSection

logger = logging.getLogger(__name__)


def can_apply(target: Document, source: Document) -> bool:
    """Check whether ``source`` may be applied to ``target`` at all."""
    if target.uses_metafile:
        if source.uses_metafile:
            return True
        logger.warning("cannot apply comment file %s to metafile %s", source.name, target.name)
        return False

    if not target.is_managed:
        logger.warning("cannot apply to unmanaged file %s", target.name)
        return False
    if source.uses_metafile:
        logger.warning("cannot apply metafile %s to comment file %s", source.name, target.name)
        return False
    if not source.is_managed:
        logger.warning("%s is unmanaged, cannot apply", source.name)
        return False
    return True


def _shift(sections, delta: int) -> None:
    if not delta:
        return
    for section in sections:
        section.startline += delta
        section.endline += delta


def apply_section(target: Document, candidate: NamedSection) -> bool:
    """Replace the same-named section of ``target`` with ``candidate``.

    Returns True if a section was replaced. A target section with local
    changes is never replaced. The replacement keeps the target's start
    line, and its source reference when the candidate has none; its end line
    and the ranges of later sections follow the new content.
    """
    if target.uses_metafile:
        logger.warning("cannot apply individual section to file managed by metafile")
        return False
    if candidate.hash != candidate.targethash:
        logger.warning("cannot apply modified section %r", candidate.name)
        return False

    for index, section in enumerate(target.sections):
        if isinstance(section, NamedSection) and section.name == candidate.name:
            if section.modified:
                logger.warning(
                    "section %r in %s has local changes, skipping", section.name, target.name,
                )
                return False
            replacement = NamedSection(
                startline=section.startline,
                endline=section.endline,
                name=section.name,
                targethash=candidate.targethash,
                source=candidate.source if candidate.source is not None else section.source,
                content=candidate.content,
                hash=candidate.hash,
            )
            replacement.endline = replacement.startline + replacement.line_count() - 1
            target.sections[index] = replacement
            _shift(target.sections[index + 1:], replacement.endline - section.endline)
            return True
    logger.debug("%s has no section %r", target.name, candidate.name)
    return False


def _apply_metafile(target: Document, source: Document) -> bool:
    mine, theirs = target.metafile, source.metafile
    if mine.modified:
        logger.warning("target %s modified, skipping", target.name)
        return False
    if theirs.modified:
        logger.warning("source file %s modified", source.name)
        return False
    if mine.hash == theirs.hash:
        logger.info("file %s already up to date", target.name)
        return False
    mine.content = theirs.content
    mine.hash = theirs.hash
    logger.info("applied %s to %s", source.name, target.name)
    return True


def apply_document(target: Document, source: Document) -> bool:
    """Apply ``source`` to ``target`` in place.

    Returns True if ``target`` changed and should be written.
    """
    if not can_apply(target, source):
        return False

    if target.uses_metafile:
        return _apply_metafile(target, source)

    if not target.modified and set(target.section_names()) <= set(source.section_names()):
        target.sections = copy.deepcopy(source.sections)
        target.markers = list(source.markers)
        logger.info("applied all sections from %s to %s", source.name, target.name)
        return True

    applied = 0
    for candidate in source.named_sections():
        if apply_section(target, copy.deepcopy(candidate)):
            applied += 1

    if applied:
        logger.info("applied %d sections from %s to %s", applied, source.name, target.name)
    else:
        logger.info(
            "applied no sections from %s to %s%s",
            source.name, target.name, " (modified)" if target.modified else "",
        )
    return applied > 0
