from __future__ import annotations

from pathlib import Path

import pytest

from conftest import run_python
from stagepack.core.logging import configure_logging

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

_PACKAGE_WITHOUT_SETUP = """
import sys
sys.path.insert(0, sys.argv[1])
from stagepack import Packager
with Packager(sys.argv[2], sys.argv[3]) as packager:
    packager.recursive_copy("src", "src")
    packager.create_autoloader()
"""


def test_library_use_logs_to_stderr_only(tmp_path: Path, project: Path) -> None:
    res = run_python(
        _PACKAGE_WITHOUT_SETUP,
        str(SRC_DIR),
        str(tmp_path / "stage"),
        str(project),
        cwd=tmp_path,
    )

    assert res.returncode == 0, res.stderr
    assert res.stdout == ""
    assert "copy_tree" in res.stderr


def test_debug_trace_uses_section_prefix(tmp_path: Path, project: Path) -> None:
    code = _PACKAGE_WITHOUT_SETUP.replace(
        "from stagepack import Packager",
        "from stagepack.core.logging import configure_logging\n"
        "configure_logging(level='DEBUG')\n"
        "from stagepack import Packager",
    )
    res = run_python(code, str(SRC_DIR), str(tmp_path / "stage"), str(project), cwd=tmp_path)

    assert res.returncode == 0, res.stderr
    assert res.stdout == ""
    assert "[setting_up] Starting" in res.stderr
    assert "[copy] Copied" in res.stderr
    assert "section=" not in res.stderr


@pytest.mark.parametrize("kwargs", [{"level": "LOUD"}, {"format": "xml"}])
def test_configure_logging_rejects_unknown_values(kwargs: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        configure_logging(force=True, **kwargs)  # type: ignore[arg-type]
