"""Custom exceptions for the :mod:`imosid` package."""
from __future__ import annotations


class ImosidError(Exception):
    """Base exception for imosid errors."""


class ConfigError(ImosidError, ValueError):
    """The user configuration file is malformed."""


class SectionError(ImosidError, ValueError):
    """A named section cannot be built from its markers."""


class MetafileError(ImosidError, ValueError):
    """A sidecar metafile is unreadable or lacks mandatory keys."""


class DocumentReadError(ImosidError, OSError):
    """A tracked file could not be read."""


class DocumentWriteError(ImosidError, OSError):
    """A tracked file could not be written."""


__all__ = [
    "ImosidError",
    "ConfigError",
    "SectionError",
    "MetafileError",
    "DocumentReadError",
    "DocumentWriteError",
]
