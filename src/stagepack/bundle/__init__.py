"""stagepack archives: zipapp bundle, zip archive and stage manifest."""

from __future__ import annotations

from .archive import BuildResult, build_bundle, build_zip, create_stub, project_constant
from .manifest import build_stage_manifest, diff_zip_against_stage, read_manifest, sha256_file, write_manifest

__all__ = [
    "BuildResult",
    "build_bundle",
    "build_zip",
    "create_stub",
    "project_constant",
    "build_stage_manifest",
    "diff_zip_against_stage",
    "read_manifest",
    "sha256_file",
    "write_manifest",
]
