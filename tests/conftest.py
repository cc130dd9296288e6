import logging
from pathlib import Path
from typing import Dict, Union

import pytest

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def build_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))
    return root


@pytest.fixture
def make_tree(tmp_path):
    """Return a helper building a file tree inside a fresh ``project`` dir."""

    def _make(files, name="project"):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return build_tree(root, files)

    return _make


@pytest.fixture
def out_file(tmp_path):
    return tmp_path / "out" / "context.md"


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers the CLI installs so they don't outlive captured streams."""
    yield
    logger = logging.getLogger("mdconcat")
    logger.handlers[:] = []
    logger.setLevel(logging.NOTSET)
