"""Comment-prefix detection from file name, extension and hashbang.

The built-in tables are immutable module constants; user config entries
take precedence over them at every step.
"""

from __future__ import annotations

import re
from pathlib import Path
from types import MappingProxyType

from imosid.config import DEFAULT_COMMENT_PREFIX, ImosidConfig

FILENAME_PREFIXES = MappingProxyType({
    "dunstrc": "#",
    "jgmenurc": "#",
    "zshrc": "#",
    "bashrc": "#",
    "Xresources": "!",
    "xsettingsd": "#",
    "vimrc": '"',
})

EXTENSION_PREFIXES = MappingProxyType({
    "py": "#",
    "sh": "#",
    "zsh": "#",
    "bash": "#",
    "fish": "#",
    "c": "//",
    "cpp": "//",
    "rasi": "//",
    "desktop": "#",
    "conf": "#",
    "vim": '"',
    "reg": ";",
    "rc": "#",
    "ini": ";",
    "xresources": "!",
})

INTERPRETER_PREFIXES = MappingProxyType({
    "python": "#",
    "sh": "#",
    "bash": "#",
    "zsh": "#",
    "fish": "#",
    "node": "//",
})

_HASHBANG_RE = re.compile(r"^#!/.*[/ ](.*)$")
# python3, python3.12 -> python
_VERSION_SUFFIX_RE = re.compile(r"[\d.]+$")


def _lookup(key: str, override: dict[str, str], builtin: MappingProxyType) -> str | None:
    if key in override:
        return override[key]
    return builtin.get(key)


def interpreter_of(first_line: str) -> str | None:
    """Return the interpreter named by a ``#!`` line, or None."""
    match = _HASHBANG_RE.match(first_line.strip())
    if not match:
        return None
    return match.group(1).strip() or None


def detect_comment_prefix(
    path: Path | str,
    first_line: str = "",
    config: ImosidConfig | None = None,
) -> str:
    """Pick the comment prefix for a file.

    Tries, in order: the file name (leading dots stripped), the extension,
    the hashbang interpreter, then the configured default.
    """
    cfg = config or ImosidConfig()
    fpath = Path(path)

    name = fpath.name.lstrip(".")
    if name:
        prefix = _lookup(name, cfg.filenames, FILENAME_PREFIXES)
        if prefix:
            return prefix

    ext = fpath.suffix[1:] if fpath.suffix else ""
    if ext:
        prefix = _lookup(ext, cfg.extensions, EXTENSION_PREFIXES)
        if prefix:
            return prefix

    interpreter = interpreter_of(first_line)
    if interpreter:
        for candidate in (interpreter, _VERSION_SUFFIX_RE.sub("", interpreter)):
            prefix = _lookup(candidate, cfg.interpreters, INTERPRETER_PREFIXES)
            if prefix:
                return prefix

    return cfg.default_comment_prefix or DEFAULT_COMMENT_PREFIX
