"""Load the optional user configuration (config.yaml).

Example::

    default_comment_prefix: "#"
    comment_prefixes:
      filenames:
        picom.conf: "#"
      extensions:
        lua: "--"
      interpreters:
        lua: "--"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from imosid.errors import ConfigError
from imosid.paths import config_path

DEFAULT_COMMENT_PREFIX = "#"

_PREFIX_TABLES = ("filenames", "extensions", "interpreters")


@dataclass
class ImosidConfig:
    """User overrides for comment-prefix detection."""

    filenames: dict[str, str] = field(default_factory=dict)
    extensions: dict[str, str] = field(default_factory=dict)
    interpreters: dict[str, str] = field(default_factory=dict)
    default_comment_prefix: str = DEFAULT_COMMENT_PREFIX
    source: Path | None = None


def _string_table(raw: object, key: str, origin: Path) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{origin}: comment_prefixes.{key} must be a mapping")
    return {str(k): str(v) for k, v in raw.items()}


def load_config(path: Path | str | None = None) -> ImosidConfig:
    """Read and parse the imosid config file.

    Args:
        path: Path to config.yaml. Defaults to :func:`imosid.paths.config_path`.

    Returns:
        Parsed config. A missing file yields the defaults.

    Raises:
        ConfigError: If the YAML is malformed or is not a mapping.
    """
    cfg_path = Path(path) if path else config_path()
    if not cfg_path.is_file():
        return ImosidConfig()

    try:
        with open(cfg_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"config at {cfg_path} is not valid YAML: {e}") from e

    if data is None:
        return ImosidConfig(source=cfg_path)
    if not isinstance(data, dict):
        raise ConfigError(f"config at {cfg_path} is not a YAML mapping")

    prefixes = data.get("comment_prefixes") or {}
    if not isinstance(prefixes, dict):
        raise ConfigError(f"{cfg_path}: comment_prefixes must be a mapping")

    tables = {key: _string_table(prefixes.get(key), key, cfg_path) for key in _PREFIX_TABLES}
    default = data.get("default_comment_prefix") or DEFAULT_COMMENT_PREFIX

    return ImosidConfig(
        filenames=tables["filenames"],
        extensions=tables["extensions"],
        interpreters=tables["interpreters"],
        default_comment_prefix=str(default),
        source=cfg_path,
    )
