# tests/conftest.py
from pathlib import Path

import pytest

from promptpacker.models import FileCandidate


def write(root: Path, rel_path: str, content, encoding="utf-8") -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding=encoding)
    return path


@pytest.fixture
def write_file(tmp_path):
    """Writes text or bytes to a path relative to tmp_path, creating parents."""
    def _write(rel_path, content):
        return write(tmp_path, rel_path, content)
    return _write


@pytest.fixture
def make_candidate(tmp_path):
    """Writes a file under tmp_path and returns an included FileCandidate for it."""
    def _make(rel_path, text="x = 1\n", included=True, **fields):
        path = write(tmp_path, rel_path, text)
        return FileCandidate(
            path=path,
            relative_path=rel_path,
            size=path.stat().st_size,
            extension=path.suffix.lower(),
            included=included,
            **fields,
        )
    return _make


@pytest.fixture
def sample_project(tmp_path):
    """
    A small project tree:
    README.md, src/app.ts, src/utils/helper.py, node_modules/pkg/index.js,
    logs/app.log, assets/logo.png
    """
    write(tmp_path, "README.md", "# Demo\n\nA demo project.\n")
    write(tmp_path, "src/app.ts", "import { helper } from './utils';\n\nexport function start() {\n  return helper();\n}\n")
    write(tmp_path, "src/utils/helper.py", "def helper():\n    return 42\n")
    write(tmp_path, "node_modules/pkg/index.js", "module.exports = 1;\n")
    write(tmp_path, "logs/app.log", "ERROR: ...\n")
    write(tmp_path, "assets/logo.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    return tmp_path
