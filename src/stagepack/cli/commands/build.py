"""`stagepack build` command.

Runs a whole packaging job from command-line options:
- stages single files (`--file`) and filtered trees (`--tree`)
- writes the class-map autoloader (and optionally manifest.json)
- builds the zipapp bundle (`--bundle`) and/or the zip archive (`--zip`)

Output paths are resolved against the invocation directory before the
packager switches the working directory to the project root.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from stagepack.core.copy import DEFAULT_EXTENSIONS
from stagepack.core.errors import PackagingError
from stagepack.core.logging import configure_logging
from stagepack.packager import Packager, PackagerConfig


def _parse_mapping(s: str) -> tuple[str, str]:
    """Parse 'SRC[:DEST]'; DEST defaults to SRC."""
    src, sep, dest = s.partition(":")
    src = src.strip()
    dest = dest.strip() if sep else src
    if not src or not dest:
        raise ValueError(f"expected SRC or SRC:DEST, got {s!r}")
    return src, dest


def _absolute(path: Optional[str]) -> Optional[Path]:
    return None if path is None else Path(path).resolve()


def register(app: typer.Typer) -> None:
    @app.command("build")
    def build(
        stage: str = typer.Option(..., "--stage", envvar="STAGEPACK_STAGE_DIR", help="Staging directory (wiped first)."),
        project_root: str = typer.Option(
            ".", "--project-root", envvar="STAGEPACK_PROJECT_ROOT", help="Project root; copy sources are relative to it."
        ),
        files: List[str] = typer.Option([], "--file", help="File to stage, as SRC or SRC:DEST. Repeatable."),
        trees: List[str] = typer.Option([], "--tree", help="Directory to stage recursively, as SRC or SRC:DEST. Repeatable."),
        exts: List[str] = typer.Option(
            [], "--ext", help=f"Extension copied from trees. Repeatable. Default: {', '.join(DEFAULT_EXTENSIONS)}."
        ),
        require: List[str] = typer.Option([], "--require", help="Stage-relative file the autoloader always loads. Repeatable."),
        autoloader_name: str = typer.Option("autoloader.py", "--autoloader-name", help="File name of the generated autoloader."),
        bundle: Optional[str] = typer.Option(None, "--bundle", help="Write a zipapp bundle (.pyz) here."),
        stub: Optional[str] = typer.Option(None, "--stub", help="Custom bundle stub file."),
        zip_path: Optional[str] = typer.Option(None, "--zip", help="Write a zip archive here."),
        zip_command: Optional[str] = typer.Option(
            None, "--zip-command", envvar="STAGEPACK_ZIP_COMMAND", help="Archive command template with a {dest} placeholder."
        ),
        manifest: bool = typer.Option(False, "--manifest", help="Write manifest.json into the stage before archiving."),
        log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
        log_format: Optional[str] = typer.Option(None, "--log-format", help="console or json."),
    ) -> None:
        """Stage files, write the autoloader and build the requested archives."""
        try:
            file_pairs = [_parse_mapping(f) for f in files]
            tree_pairs = [_parse_mapping(t) for t in trees]
            configure_logging(
                level=log_level.upper() if log_level else None,  # type: ignore[arg-type]
                format=log_format.lower() if log_format else None,  # type: ignore[arg-type]
                force=True,
            )
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e

        bundle_dest = _absolute(bundle)
        stub_path = _absolute(stub)
        zip_dest = _absolute(zip_path)
        config = PackagerConfig(
            extensions=tuple(exts) if exts else DEFAULT_EXTENSIONS,
            autoloader_filename=autoloader_name,
            zip_command=zip_command,
        )

        try:
            with Packager(stage, project_root, config=config) as packager:
                for src, dest in file_pairs:
                    packager.deep_copy(src, dest)
                for src, dest in tree_pairs:
                    packager.recursive_copy(src, dest)
                packager.create_autoloader(require)
                if manifest:
                    packager.write_manifest()
                if bundle_dest is not None:
                    typer.echo(str(packager.create_bundle(bundle_dest, stub_path).path))
                if zip_dest is not None:
                    typer.echo(str(packager.create_zip(zip_dest).path))
        except PackagingError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e
