"""Path resolution.

Resolves the user config location and the metafile sidecar convention.
Uses environment variables when available, falls back to conventional
defaults.

Environment variables:
    IMOSID_CONFIG — config file (default: $XDG_CONFIG_HOME/imosid/config.yaml)
    XDG_CONFIG_HOME — config root (default: ~/.config)
"""

from __future__ import annotations

import os
from pathlib import Path

METAFILE_SUFFIX = ".imosid.toml"
_CONFIG_SUBPATH = Path("imosid") / "config.yaml"


def config_home() -> Path:
    """Return the XDG config root."""
    env = os.environ.get("XDG_CONFIG_HOME")
    if env:
        return Path(env)
    return Path.home() / ".config"


def config_path() -> Path:
    """Return the path to the imosid config file."""
    env = os.environ.get("IMOSID_CONFIG")
    if env:
        return Path(env).expanduser()
    return config_home() / _CONFIG_SUBPATH


def expand_tilde(path: str | Path) -> Path:
    """Expand a leading ``~/`` into the home directory.

    Only the current user's home is expanded; ``~other/`` is left alone.
    """
    raw = str(path)
    if raw == "~":
        return Path.home()
    if raw.startswith("~/"):
        return Path.home() / raw[2:]
    return Path(raw)


def metafile_path(parent: str | Path) -> Path:
    """Return the sidecar metafile path for ``parent``."""
    parent = Path(parent)
    return parent.with_name(parent.name + METAFILE_SUFFIX)


def is_metafile(path: str | Path) -> bool:
    """True if ``path`` names a sidecar metafile."""
    return str(path).endswith(METAFILE_SUFFIX)
