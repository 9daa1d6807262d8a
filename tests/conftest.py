"""
Shared fixtures for the exporter tests.
"""

import gzip
import logging
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from dump_helpers import HEADER


@pytest.fixture
def write_dump(tmp_path):
    """Write dump rows (header included) to a plain or gzip file."""

    def _write(lines, name="dump.txt"):
        path = tmp_path / name
        content = "\n".join([HEADER, *lines]) + "\n"
        if name.endswith(".gz"):
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def index(tmp_path):
    """An open author index in a private temp dir."""
    from ol_export.index import AuthorIndex

    with AuthorIndex(str(tmp_path)) as idx:
        yield idx


@pytest.fixture(autouse=True)
def restore_logging():
    """configure_logging() swaps root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
