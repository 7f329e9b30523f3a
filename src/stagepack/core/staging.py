"""Staging directory lifecycle.

`initialize_staging()` wipes and recreates the staging directory, resolves it
to a canonical absolute path and switches the process working directory to the
project root, so relative source paths given to later copy calls resolve
predictably.

The chdir is a process-wide side effect. A staging context is meant for one
single-threaded packaging run and is not safe for concurrent use.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from stagepack.core.errors import InvalidConfiguration, StagingCreateFailed, StagingResetFailed
from stagepack.core.tracer import SectionTracer


@dataclass(frozen=True)
class StagingContext:
    """Resolved paths of one packaging run.

    Attributes:
        stage_dir: absolute, symlink-free staging directory.
        project_root: absolute project root; the process cwd after initialization.
    """

    stage_dir: Path
    project_root: Path

    def stage_path(self, relative: str) -> Path:
        """Join `relative` under the stage dir, collapsing duplicate separators."""
        return Path(collapse_separators(f"{self.stage_dir}/{relative}"))


def collapse_separators(path: str) -> str:
    while "//" in path:
        path = path.replace("//", "/")
    return path


def _is_filesystem_root(path: Path) -> bool:
    resolved = path.resolve()
    return resolved == Path(resolved.anchor)


def initialize_staging(
    stage_dir: Union[str, Path],
    project_root: Optional[Union[str, Path]] = None,
    *,
    tracer: Optional[SectionTracer] = None,
) -> StagingContext:
    """Create a fresh, empty staging directory and enter the project root.

    Args:
        stage_dir: staging directory; removed first if it already exists.
        project_root: existing project directory. Defaults to the current
            working directory.

    Raises:
        InvalidConfiguration: stage_dir is empty or the filesystem root, or
            project_root is not an existing directory.
        StagingResetFailed: an existing stage_dir could not be removed.
        StagingCreateFailed: stage_dir could not be created.
    """
    tracer = tracer or SectionTracer()
    op = "initialize"

    if stage_dir is None or not str(stage_dir).strip():
        raise InvalidConfiguration("invalid base directory (empty)", operation=op, path=stage_dir)
    stage = Path(stage_dir)
    if _is_filesystem_root(stage):
        raise InvalidConfiguration("invalid base directory (filesystem root)", operation=op, path=stage)

    root = Path.cwd() if project_root is None else Path(project_root)

    with tracer.section("setting_up"):
        if stage.is_dir() or stage.is_symlink():
            tracer.debug(f"Removing existing directory: {stage}")
            try:
                if stage.is_symlink():
                    stage.unlink()
                else:
                    shutil.rmtree(stage)
            except OSError as e:
                raise StagingResetFailed(f"could not remove {stage}: {e}", operation=op, path=stage) from e

        tracer.debug(f"Creating staging directory: {stage}")
        try:
            stage.mkdir(parents=True)
            resolved = stage.resolve(strict=True)
        except OSError as e:
            raise StagingCreateFailed(f"could not create {stage}: {e}", operation=op, path=stage) from e
        tracer.debug(f"Created staging directory at: {resolved}")

        if not root.is_dir():
            raise InvalidConfiguration(f"project root not found: {root}", operation=op, path=root)
        root = root.resolve()

    os.chdir(root)
    return StagingContext(stage_dir=resolved, project_root=root)
