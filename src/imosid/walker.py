"""Walk a directory for candidate tracked files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from imosid.paths import is_metafile

SKIP_DIRS = frozenset({".git"})


def walk_files(root: Path | str) -> Iterator[Path]:
    """Yield regular files under ``root`` in sorted order.

    Metafile sidecars and anything inside ``.git`` are skipped.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if is_metafile(path) or not path.is_file():
                continue
            yield path
