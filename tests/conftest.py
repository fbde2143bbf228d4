"""Shared test fixtures for imosid."""

from pathlib import Path

import pytest

from imosid.document.section import digest

FIXTURES = Path(__file__).parent / "fixtures"


def tracked(name: str, body: str, targethash: str | None = None, source: str | None = None) -> str:
    """Render a section block; compiled unless ``targethash`` says otherwise."""
    text = f"#... {name} begin\n#... {name} hash {targethash or digest(body)}\n"
    if source:
        text += f"#... {name} source {source}\n"
    return text + body + f"#... {name} end\n"


@pytest.fixture
def sections_text():
    return (FIXTURES / "sections.sh").read_text()


@pytest.fixture
def write(tmp_path):
    """Write a file under tmp_path and return its path."""
    def _write(relpath: str, text: str) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path
    return _write
