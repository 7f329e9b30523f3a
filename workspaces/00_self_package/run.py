"""Workspace 00: package stagepack itself, then check the artifacts.

This workspace uses the repository as its own input. It:
1) stages README.md, LICENSE (when present) and src/stagepack under
   outputs/stage/
2) writes the class-map autoloader and manifest.json
3) builds outputs/build/stagepack.pyz and outputs/build/stagepack.zip
4) checks the zip against the stage and imports a module through the bundle
   in a fresh interpreter

A JSON report is written to outputs/report.json; any failed check exits non-zero.
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any

from stagepack import Packager
from stagepack.bundle.manifest import diff_zip_against_stage
from stagepack.core.logging import configure_logging


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def main() -> None:
    here = Path(__file__).resolve().parent
    repo_root = here.parents[1]
    outputs = here / "outputs"
    build = outputs / "build"

    configure_logging(level="DEBUG")

    with Packager(outputs / "stage", repo_root) as packager:
        for name in ("README.md", "LICENSE"):
            if (repo_root / name).is_file():
                packager.deep_copy(name, name)
        packager.recursive_copy("src/stagepack", "stagepack")
        packager.create_autoloader()
        packager.write_manifest(name="stagepack")
        bundle = packager.create_bundle(build / "stagepack.pyz")
        archive = packager.create_zip(build / "stagepack.zip")
        stage_dir = packager.stage_dir

    zip_problems = diff_zip_against_stage(archive.path, stage_dir)

    probe = subprocess.run(
        [
            sys.executable,
            "-c",
            "import runpy, sys, importlib; runpy.run_path(sys.argv[1]); "
            "print(importlib.import_module('stagepack.core.staging').__name__)",
            str(bundle.path),
        ],
        cwd=str(outputs),
        capture_output=True,
        text=True,
        check=False,
    )
    bundle_ok = probe.returncode == 0 and probe.stdout.strip() == "stagepack.core.staging"

    report = {
        "stage_dir": str(stage_dir),
        "bundle_path": str(bundle.path),
        "zip_path": str(archive.path),
        "zip_problems": zip_problems,
        "bundle_import_ok": bundle_ok,
        "bundle_stderr": probe.stderr,
    }
    _write_json(outputs / "report.json", report)

    if zip_problems or not bundle_ok:
        raise SystemExit("self-package check failed; see outputs/report.json")


if __name__ == "__main__":
    main()
