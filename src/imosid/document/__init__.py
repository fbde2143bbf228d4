"""Documents: section model, assembly from text, and metafile sidecars."""

from imosid.document.assembler import assemble, parse_text
from imosid.document.metafile import MetaFile
from imosid.document.model import Document
from imosid.document.section import AnonymousSection, ChangeState, NamedSection, Section, digest

__all__ = [
    "AnonymousSection",
    "ChangeState",
    "Document",
    "MetaFile",
    "NamedSection",
    "Section",
    "assemble",
    "digest",
    "parse_text",
]
