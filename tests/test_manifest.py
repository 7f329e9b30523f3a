from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from conftest import write_files
from stagepack.bundle.manifest import (
    build_stage_manifest,
    diff_zip_against_stage,
    read_manifest,
    sha256_bytes,
    sha256_file,
    write_manifest,
)


def test_manifest_roundtrip_and_hashes(tmp_path: Path) -> None:
    stage = write_files(tmp_path / "stage", {"a.py": "A = 1\n", "sub/b.pem": "cert\n"})

    manifest = build_stage_manifest(stage, name=" demo ", created_utc="2026-01-01T00:00:00Z")
    write_manifest(stage / "manifest.json", manifest)
    loaded = read_manifest(stage / "manifest.json")

    assert loaded == manifest
    assert loaded["name"] == "demo"
    assert loaded["created_utc"] == "2026-01-01T00:00:00Z"
    assert sorted(loaded["files"]) == ["a.py", "sub/b.pem"]
    for rel, meta in loaded["files"].items():
        assert meta["sha256"] == sha256_file(stage / rel)
        assert meta["size"] == (stage / rel).stat().st_size

    # Rebuilding after the manifest exists does not list the manifest itself.
    again = build_stage_manifest(stage, name="demo", created_utc="2026-01-01T00:00:00Z")
    assert again == manifest


def test_manifest_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        build_stage_manifest(tmp_path, name="  ")
    (tmp_path / "bad.json").write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        read_manifest(tmp_path / "bad.json")
    with pytest.raises(TypeError):
        sha256_bytes("text")  # type: ignore[arg-type]


def test_diff_reports_every_kind_of_difference(tmp_path: Path) -> None:
    stage = write_files(tmp_path / "stage", {"same.py": "x", "changed.py": "new", "only_stage.py": "s"})
    archive = tmp_path / "a.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("./same.py", "x")
        zf.writestr("changed.py", "old")
        zf.writestr("only_zip.py", "z")
        zf.writestr("dir/", "")

    assert diff_zip_against_stage(archive, stage) == [
        "sha256 mismatch: changed.py",
        "missing from archive: only_stage.py",
        "not in stage: only_zip.py",
    ]
