from __future__ import annotations

from pathlib import Path

import pytest

from conftest import listing, record_trace, write_files
from stagepack.core.copy import FileCopier, file_extension, should_copy
from stagepack.core.errors import CopyFailed, SourceNotFound
from stagepack.core.staging import initialize_staging


def _copier(tmp_path: Path, project: Path) -> FileCopier:
    return FileCopier(initialize_staging(tmp_path / "stage", project))


def test_copy_file_creates_parents_and_is_idempotent(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)

    first = copier.copy_file("README.md", "docs//README.md")
    assert first == copier.context.stage_dir / "docs" / "README.md"
    assert first.read_bytes() == (project / "README.md").read_bytes()

    (project / "README.md").write_text("# changed\n", encoding="utf-8")
    second = copier.copy_file("README.md", "docs//README.md")
    assert second == first
    assert second.read_bytes() == b"# changed\n"


def test_copy_file_missing_source(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)
    with pytest.raises(SourceNotFound) as exc:
        copier.copy_file("MISSING.md", "MISSING.md")
    assert exc.value.path == "MISSING.md"
    assert "copy_file" in str(exc.value)


def test_copy_file_rejects_directory_source(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)
    with pytest.raises(SourceNotFound):
        copier.copy_file("src", "src")


def test_copy_file_wraps_copy_errors(tmp_path: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    copier = _copier(tmp_path, project)

    def _fail(src, dst, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("stagepack.core.copy.shutil.copyfile", _fail)
    with pytest.raises(CopyFailed, match="disk full"):
        copier.copy_file("README.md", "README.md")


def test_copy_tree_filters_by_extension_and_license(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)

    total = copier.copy_tree("src", "lib")

    assert total == 5
    assert listing(copier.context.stage_dir) == [
        "lib/A.py",
        "lib/B.py",
        "lib/cacert.pem",
        "lib/vendor/LICENSE",
        "lib/vendor/Tool.py",
    ]


def test_copy_tree_license_survives_any_extension_set(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)

    total = copier.copy_tree("src", "src", extensions=["txt"])

    assert total == 2
    assert listing(copier.context.stage_dir) == ["src/notes.txt", "src/vendor/LICENSE"]


def test_copy_tree_license_is_case_sensitive(tmp_path: Path) -> None:
    project = write_files(tmp_path / "p", {"pkg/License": "x", "pkg/LICENSE.txt": "y", "pkg/mod.py": ""})
    copier = _copier(tmp_path, project)

    copier.copy_tree("pkg", "pkg", extensions=["py"])

    assert listing(copier.context.stage_dir) == ["pkg/mod.py"]


def test_copy_tree_missing_source_leaves_stage_unchanged(tmp_path: Path, project: Path) -> None:
    copier = _copier(tmp_path, project)
    copier.copy_file("README.md", "README.md")
    before = listing(copier.context.stage_dir)

    with pytest.raises(SourceNotFound):
        copier.copy_tree("does-not-exist", "x")

    assert listing(copier.context.stage_dir) == before


def test_copy_tree_follows_symlinks(tmp_path: Path, project: Path) -> None:
    outside = write_files(tmp_path / "outside", {"Linked.py": "X = 1\n"})
    (project / "src" / "linked").symlink_to(outside, target_is_directory=True)
    copier = _copier(tmp_path, project)

    copier.copy_tree("src", "src")

    assert (copier.context.stage_dir / "src" / "linked" / "Linked.py").read_text(encoding="utf-8") == "X = 1\n"


def test_extension_helpers() -> None:
    assert file_extension("A.py") == "py"
    assert file_extension("archive.tar.gz") == "gz"
    assert file_extension("Makefile") == ""
    assert should_copy("LICENSE", ())
    assert should_copy("cert.pem", ("py", "pem"))
    assert not should_copy("notes.txt", ("py", "pem"))


def test_copy_file_runs_in_its_own_section(tmp_path: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    copier = _copier(tmp_path, project)
    calls = record_trace(copier.tracer, monkeypatch)

    copier.copy_file("LICENSE", "LICENSE")

    assert calls[0] == ("Starting", {"section": "copy_file"})
    assert calls[-1] == ("Completed", {"section": "copy_file"})
    assert copier.tracer.sections == ()
