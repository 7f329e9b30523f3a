"""Archive builder: single-file zipapp bundle and plain zip archive.

Bundle layout (`.pyz`, built with the stdlib `zipapp` module):
- every file of the staged tree at its stage-relative path;
- `__main__.py`: the bootstrap stub. The default stub defines the project
  constant, imports the class-map autoloader and ends with the halt marker.

The zip archive is produced by an external command run with the staging
directory as its working directory, so archive paths are stage-relative.
"""

from __future__ import annotations

import re
import shlex
import shutil
import sys
import tempfile
import zipapp
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from stagepack.core.command import CommandExecutor
from stagepack.core.errors import DirectoryCreateFailed, InvalidConfiguration, SourceNotFound, WriteFailed
from stagepack.core.logging import get_logger
from stagepack.core.tracer import SectionTracer

BUNDLE_SUFFIX = ".pyz"
BUNDLE_INTERPRETER = "/usr/bin/env python3"
STUB_NAME = "__main__.py"
HALT_MARKER = "# __HALT__"

# `{dest}` is replaced with the shell-quoted absolute archive path.
ZIP_COMMAND_TEMPLATE = shlex.quote(sys.executable) + " -m zipfile -c {dest} ."

log = get_logger("stagepack.bundle")


@dataclass(frozen=True)
class BuildResult:
    kind: str
    path: Path
    output: str = ""


def project_constant(dest: Union[str, Path]) -> str:
    """Constant name defined by the default stub: BASE NAME upper-cased, suffix stripped."""
    name = Path(dest).name
    if name.endswith(BUNDLE_SUFFIX):
        name = name[: -len(BUNDLE_SUFFIX)]
    constant = re.sub(r"\W", "_", name.upper())
    if not constant or constant[0].isdigit():
        constant = f"_{constant}"
    return constant


def create_stub(dest: Union[str, Path], autoloader: str = "autoloader", *, tracer: Optional[SectionTracer] = None) -> str:
    """Render the default bootstrap stub for a bundle written to `dest`."""
    tracer = tracer or SectionTracer()
    with tracer.section("stub"):
        tracer.debug(f"Creating bundle stub at {dest}")
        alias = Path(dest).name
        lines = [
            f'"""Bootstrap stub for the {alias} bundle."""',
            f"{project_constant(dest)} = True",
            f"import {autoloader}  # noqa: E402,F401",
            HALT_MARKER,
        ]
    return "\n".join(lines) + "\n"


def _stub_text(stub: Union[str, Path]) -> str:
    if isinstance(stub, Path):
        if not stub.is_file():
            raise SourceNotFound(f"stub file not found: {stub}", operation="create_bundle", path=stub)
        return stub.read_text(encoding="utf-8")
    return stub


def _prepare_destination(dest: Path, stage_dir: Path, operation: str) -> Path:
    dest = dest.resolve()
    if dest == stage_dir or stage_dir in dest.parents:
        raise InvalidConfiguration(
            f"archive destination must be outside the staging directory: {dest}",
            operation=operation,
            path=dest,
        )
    if not dest.parent.is_dir():
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailed(f"unable to create directory: {dest.parent}", operation=operation, path=dest.parent) from e
    return dest


def build_bundle(
    stage_dir: Union[str, Path],
    dest: Union[str, Path],
    stub: Optional[Union[str, Path]] = None,
    *,
    autoloader: str = "autoloader",
    tracer: Optional[SectionTracer] = None,
) -> BuildResult:
    """Materialize every staged file into a zipapp bundle at `dest`.

    Args:
        stage_dir: staged tree to bundle.
        dest: bundle path; its base name is the bundle alias.
        stub: stub source text, or a Path to a stub file. None creates the
            default stub.
        autoloader: module name of the generated bootstrap module.

    Raises:
        SourceNotFound: stage_dir (or a stub file) does not exist.
        InvalidConfiguration: dest lies inside stage_dir.
        WriteFailed: the bundle could not be written.
    """
    tracer = tracer or SectionTracer()
    op = "create_bundle"
    stage = Path(stage_dir)
    if not stage.is_dir():
        raise SourceNotFound(f"staging directory not found: {stage}", operation=op, path=stage)
    stage = stage.resolve()
    target = _prepare_destination(Path(dest), stage, op)

    with tracer.section("bundle"):
        tracer.debug(f"Creating bundle file at {target}")
        text = _stub_text(stub) if stub is not None else create_stub(target, autoloader, tracer=tracer)

        try:
            with tempfile.TemporaryDirectory(prefix="stagepack-bundle-") as tmp:
                root = Path(tmp) / "root"
                shutil.copytree(stage, root)
                (root / STUB_NAME).write_text(text, encoding="utf-8")
                if target.exists():
                    target.unlink()
                zipapp.create_archive(root, target=target, interpreter=BUNDLE_INTERPRETER)
        except (OSError, shutil.Error, zipapp.ZipAppError) as e:
            raise WriteFailed(f"unable to write bundle {target}: {e}", operation=op, path=target) from e

        tracer.debug(f"Created bundle at {target}")

    log.info("bundle", path=str(target))
    return BuildResult(kind="bundle", path=target)


def build_zip(
    stage_dir: Union[str, Path],
    dest: Union[str, Path],
    command: Optional[str] = None,
    *,
    executor: Optional[CommandExecutor] = None,
    tracer: Optional[SectionTracer] = None,
) -> BuildResult:
    """Compress the staged tree into `dest` by running an archive command in the stage.

    `command` is a shell template with a `{dest}` placeholder, e.g.
    `"zip -r {dest} ."`. The command runs with cwd=stage_dir; the process
    working directory is left untouched.

    Raises:
        SourceNotFound: stage_dir does not exist.
        InvalidConfiguration: dest lies inside stage_dir or the template has no `{dest}`.
        CommandFailed: the archive command exited non-zero.
    """
    tracer = tracer or SectionTracer()
    executor = executor or CommandExecutor(tracer)
    op = "create_zip"
    stage = Path(stage_dir)
    if not stage.is_dir():
        raise SourceNotFound(f"staging directory not found: {stage}", operation=op, path=stage)
    stage = stage.resolve()
    template = command or ZIP_COMMAND_TEMPLATE
    if "{dest}" not in template:
        raise InvalidConfiguration(f"zip command template has no {{dest}} placeholder: {template}", operation=op)
    target = _prepare_destination(Path(dest), stage, op)

    with tracer.section("zip"):
        tracer.debug(f"Creating a zip file at {target}")
        if target.exists():
            try:
                target.unlink()
            except OSError as e:
                raise WriteFailed(f"unable to replace {target}: {e}", operation=op, path=target) from e
        result = executor.check(template.replace("{dest}", shlex.quote(str(target))), cwd=stage, operation=op)
        tracer.debug(f"  > Created at {target}")

    log.info("zip", path=str(target))
    return BuildResult(kind="zip", path=target, output=result.output)
