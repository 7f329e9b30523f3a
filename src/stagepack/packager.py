"""Packager: stage project files and package them as a bundle and/or zip.

Typical run:

    with Packager("/tmp/stage", project_root=".") as packager:
        for name in ("README.md", "LICENSE"):
            packager.deep_copy(name, name)
        packager.recursive_copy("src", "src")
        packager.create_autoloader()
        packager.create_bundle("/tmp/build/app.pyz")
        packager.create_zip("/tmp/build/app.zip")

Construction wipes and recreates the staging directory and changes the process
working directory to the project root. A Packager is not safe for concurrent
use; run one packaging job per process at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Iterable, Optional, Sequence, Type, Union

from stagepack.autoload.writer import DEFAULT_FILENAME, validate_module_filename, write_autoloader
from stagepack.bundle.archive import BuildResult, build_bundle, build_zip
from stagepack.bundle.manifest import MANIFEST_NAME, build_stage_manifest, write_manifest
from stagepack.core.command import CommandExecutor, CommandResult
from stagepack.core.copy import DEFAULT_EXTENSIONS, FileCopier
from stagepack.core.errors import WriteFailed
from stagepack.core.staging import StagingContext, initialize_staging
from stagepack.core.tracer import SectionTracer

PathArg = Union[str, Path]


@dataclass(frozen=True)
class PackagerConfig:
    """Knobs shared by all operations of one Packager.

    Attributes:
        extensions: default extension filter for recursive_copy.
        autoloader_filename: file name of the generated bootstrap module.
        zip_command: shell template for create_zip with a `{dest}` placeholder;
            None uses the Python zipfile CLI.
    """

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    autoloader_filename: str = DEFAULT_FILENAME
    zip_command: Optional[str] = None

    @property
    def autoloader_module(self) -> str:
        return validate_module_filename(self.autoloader_filename)


class Packager:
    def __init__(
        self,
        stage_dir: PathArg,
        project_root: Optional[PathArg] = None,
        *,
        config: Optional[PackagerConfig] = None,
        tracer: Optional[SectionTracer] = None,
    ) -> None:
        self.config = config or PackagerConfig()
        # Fail on a bad autoloader name before anything is deleted.
        validate_module_filename(self.config.autoloader_filename)
        self.tracer = tracer or SectionTracer()
        self.executor = CommandExecutor(self.tracer)
        self.context: StagingContext = initialize_staging(stage_dir, project_root, tracer=self.tracer)
        self._copier = FileCopier(self.context, self.tracer)
        self.tracer.enter("staging")

    @property
    def stage_dir(self) -> Path:
        return self.context.stage_dir

    @property
    def project_root(self) -> Path:
        return self.context.project_root

    def __enter__(self) -> "Packager":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close any sections still open (the long-lived "staging" one included)."""
        self.tracer.close_all()

    def debug(self, message: str) -> None:
        self.tracer.debug(message)

    def exec(self, command: str) -> CommandResult:
        """Run a shell command in the current directory; CommandFailed on non-zero exit."""
        return self.executor.check(command)

    def deep_copy(self, source: PathArg, dest: str) -> Path:
        """Copy one file to `dest`, relative to the stage dir."""
        return self._copier.copy_file(source, dest)

    def recursive_copy(self, source_dir: PathArg, dest_dir: str, extensions: Optional[Iterable[str]] = None) -> int:
        """Copy matching files (and any LICENSE) from `source_dir` to `dest_dir`."""
        exts = self.config.extensions if extensions is None else tuple(extensions)
        return self._copier.copy_tree(source_dir, dest_dir, exts)

    def create_autoloader(self, files: Sequence[str] = ()) -> Path:
        """Generate the class-map bootstrap module at the stage root."""
        return write_autoloader(self.stage_dir, files, self.config.autoloader_filename, tracer=self.tracer)

    def write_manifest(self, name: Optional[str] = None) -> Path:
        """Write manifest.json (sha256 of each staged file) at the stage root."""
        dest = self.stage_dir / MANIFEST_NAME
        with self.tracer.section("manifest"):
            manifest = build_stage_manifest(self.stage_dir, name=name or self.project_root.name)
            self.tracer.debug(f"Writing manifest for {len(manifest['files'])} files to {dest}")
            try:
                write_manifest(dest, manifest)
            except OSError as e:
                raise WriteFailed(f"unable to write {dest}: {e}", operation="write_manifest", path=dest) from e
        return dest

    def create_bundle(self, dest: PathArg, stub: Optional[Union[str, Path]] = None) -> BuildResult:
        """Build a zipapp bundle whose default stub imports the autoloader."""
        return build_bundle(
            self.stage_dir,
            dest,
            stub,
            autoloader=self.config.autoloader_module,
            tracer=self.tracer,
        )

    def create_zip(self, dest: PathArg) -> BuildResult:
        """Zip the staged tree with paths relative to the stage root."""
        return build_zip(
            self.stage_dir,
            dest,
            self.config.zip_command,
            executor=self.executor,
            tracer=self.tracer,
        )
