"""Pytest configuration.

This repo follows the `src/` layout. Some environments may invoke a `pytest`
entrypoint from a different Python install than the one used for
`python -m pip install -e ...`, which can cause `import stagepack` to fail.

To keep the suite robust, we ensure `src/` is on `sys.path` during tests.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def _restore_cwd():
    # Staging initialization chdirs into the project root.
    cwd = os.getcwd()
    yield
    os.chdir(cwd)


# =============================================================================
# Shared Test Helpers
# =============================================================================


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Create `files` (relative POSIX path -> text) under `root`."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def listing(root: Path) -> list[str]:
    """Sorted relative POSIX paths of every file under `root`."""
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


def run_python(code: str, *args: str, cwd: Path) -> subprocess.CompletedProcess:
    """Run `code` in a fresh interpreter so import-system changes stay isolated."""
    return subprocess.run(
        [sys.executable, "-c", code, *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project tree: README, LICENSE and a src/ tree with mixed files."""
    root = tmp_path / "project"
    return write_files(
        root,
        {
            "README.md": "# demo\n",
            "LICENSE": "MIT\n",
            "src/A.py": 'NAME = "A"\n',
            "src/B.py": 'NAME = "B"\n',
            "src/notes.txt": "not staged\n",
            "src/cacert.pem": "-----BEGIN CERTIFICATE-----\n",
            "src/vendor/LICENSE": "vendor license\n",
            "src/vendor/Tool.py": 'NAME = "Tool"\n',
        },
    )


def record_trace(tracer, monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, dict]]:
    """Capture (message, fields) pairs the tracer emits instead of logging them."""
    calls: list[tuple[str, dict]] = []

    class _Recorder:
        def debug(self, message: str, **fields: object) -> None:
            calls.append((message, dict(fields)))

    monkeypatch.setattr(tracer, "_log", _Recorder())
    return calls
