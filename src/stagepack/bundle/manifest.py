"""Stage manifest utilities.

This module is intentionally small and dependency-light to avoid import cycles.
It provides:
- sha256 hashing helpers
- manifest.json build/read/write for a staged tree
- a fidelity check of a zip archive against the staged tree
"""

from __future__ import annotations

import hashlib
import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from stagepack.core.copy import iter_tree

SCHEMA_VERSION = "stagepack-1.0"
MANIFEST_NAME = "manifest.json"


def sha256_bytes(b: bytes) -> str:
    """Return hex-encoded sha256 for bytes."""
    if not isinstance(b, (bytes, bytearray)):
        raise TypeError(f"sha256_bytes: expected bytes, got {type(b).__name__}")
    return hashlib.sha256(bytes(b)).hexdigest()


def sha256_file(path: Path) -> str:
    """Return hex-encoded sha256 for a file on disk."""
    p = Path(path)
    h = hashlib.sha256()
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _now_utc_iso() -> str:
    # Example: 2026-10-19T00:00:00Z
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def stage_hashes(stage_dir: Path, exclude: Iterable[str] = ()) -> dict[str, str]:
    """Map stage-relative POSIX path -> sha256 for every staged file."""
    root = Path(stage_dir)
    skip = set(exclude)
    out: dict[str, str] = {}
    for path in iter_tree(root):
        rel = path.relative_to(root).as_posix()
        if rel not in skip:
            out[rel] = sha256_file(path)
    return out


def build_stage_manifest(
    stage_dir: Path,
    *,
    name: str,
    created_utc: str | None = None,
    schema_version: str = SCHEMA_VERSION,
) -> dict[str, Any]:
    """Construct a manifest describing every file currently in the stage.

    An existing manifest.json at the stage root is not listed in itself.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("manifest: name must be a non-empty string")
    if created_utc is None:
        created_utc = _now_utc_iso()

    root = Path(stage_dir)
    files: dict[str, dict[str, Any]] = {}
    for rel, digest in stage_hashes(root, exclude=[MANIFEST_NAME]).items():
        files[rel] = {"sha256": digest, "size": (root / rel).stat().st_size}

    return {
        "schema_version": schema_version,
        "name": name.strip(),
        "created_utc": created_utc,
        "files": files,
    }


def read_manifest(path: Path) -> dict[str, Any]:
    p = Path(path)
    obj = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"{p.name}: expected JSON object")
    if not isinstance(obj.get("files"), dict):
        raise ValueError(f"{p.name}: files must be an object")
    return obj


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(manifest, indent=2, sort_keys=True) + "\n"
    p.write_text(text, encoding="utf-8")


def zip_hashes(zip_path: Path) -> dict[str, str]:
    """Map archive member path -> sha256 for every file member (directories skipped)."""
    out: dict[str, str] = {}
    with zipfile.ZipFile(zip_path) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = info.filename
            while name.startswith("./"):
                name = name[2:]
            out[name] = sha256_bytes(zf.read(info))
    return out


def diff_zip_against_stage(zip_path: Path, stage_dir: Path) -> list[str]:
    """Compare a zip archive to the staged tree byte-for-byte.

    Returns a sorted list of human-readable differences; empty means the
    archive reproduces the stage exactly.
    """
    archived = zip_hashes(zip_path)
    staged = stage_hashes(stage_dir)

    problems: list[str] = []
    for rel in sorted(set(staged) | set(archived)):
        if rel not in archived:
            problems.append(f"missing from archive: {rel}")
        elif rel not in staged:
            problems.append(f"not in stage: {rel}")
        elif archived[rel] != staged[rel]:
            problems.append(f"sha256 mismatch: {rel}")
    return problems
