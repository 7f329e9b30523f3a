"""File copy engine: copy single files or filtered subtrees into the stage."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from stagepack.core.errors import CopyFailed, DirectoryCreateFailed, SourceNotFound
from stagepack.core.logging import get_logger
from stagepack.core.staging import StagingContext, collapse_separators
from stagepack.core.tracer import SectionTracer

DEFAULT_EXTENSIONS: tuple[str, ...] = ("py", "pem")

# Always copied by copy_tree, whatever the extension filter says.
LICENSE_NAME = "LICENSE"

log = get_logger("stagepack.copy")


def file_extension(name: str) -> str:
    """Extension of a base name without the dot ('' when there is none)."""
    return Path(name).suffix[1:]


def should_copy(name: str, extensions: Iterable[str]) -> bool:
    """True if a file with base name `name` passes the copy filter."""
    return name == LICENSE_NAME or file_extension(name) in extensions


def iter_tree(root: Path) -> Iterator[Path]:
    """Yield every file under `root` in sorted order, following symlinks."""
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


class FileCopier:
    def __init__(self, context: StagingContext, tracer: Optional[SectionTracer] = None) -> None:
        self.context = context
        self.tracer = tracer or SectionTracer()

    def copy_file(self, source: Union[str, Path], dest: str) -> Path:
        """Copy `source` to `dest` (relative to the stage dir), creating parents.

        Re-running overwrites the destination.

        Raises:
            SourceNotFound: source is not an existing regular file.
            DirectoryCreateFailed: destination parents could not be created.
            CopyFailed: the byte copy itself failed.
        """
        op = "copy_file"
        src = Path(source)
        if not src.is_file():
            raise SourceNotFound(f"file not found: {src}", operation=op, path=src)

        target = self.context.stage_path(str(dest))
        with self.tracer.section("copy_file"):
            parent = target.parent
            if not parent.is_dir():
                try:
                    parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise DirectoryCreateFailed(f"unable to create directory: {parent}", operation=op, path=parent) from e

            try:
                shutil.copyfile(src, target)
            except OSError as e:
                raise CopyFailed(f"unable to copy {src} to {target}: {e}", operation=op, path=src) from e
            self.tracer.debug(f"Copied {src} to {target}")
        return target

    def copy_tree(
        self,
        source_dir: Union[str, Path],
        dest_dir: str,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> int:
        """Recursively copy matching files from `source_dir` to `dest_dir`.

        A file is copied when its extension is in `extensions` or its base
        name is exactly LICENSE. Returns the number of files copied.

        Raises:
            SourceNotFound: source_dir is not an existing directory.
        """
        src_root = Path(source_dir)
        if not src_root.is_dir():
            raise SourceNotFound(f"{src_root} not found", operation="copy_tree", path=src_root)
        src_root = src_root.resolve()
        exts = frozenset(e.lstrip(".") for e in extensions)

        total = 0
        with self.tracer.section("copy"):
            self.tracer.debug(f"Starting to copy files from {src_root}")
            for path in iter_tree(src_root):
                if not should_copy(path.name, exts):
                    continue
                rel = path.relative_to(src_root).as_posix()
                self.copy_file(path, collapse_separators(f"{dest_dir}/{rel}"))
                total += 1
            self.tracer.debug(f"Copied {total} files from {src_root}")

        log.info("copy_tree", source=str(src_root), dest=dest_dir, files=total)
        return total
