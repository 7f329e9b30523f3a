"""`stagepack verify` command.

Checks that a zip archive reproduces a staged tree byte-for-byte (sha256 per
file). Prints `OK`, or lists every difference and exits 1.
"""

from __future__ import annotations

from pathlib import Path

import typer

from stagepack.bundle.manifest import diff_zip_against_stage


def register(app: typer.Typer) -> None:
    @app.command("verify")
    def verify(
        zip_path: str = typer.Option(..., "--zip", help="Zip archive produced by `stagepack build --zip`."),
        stage: str = typer.Option(..., "--stage", envvar="STAGEPACK_STAGE_DIR", help="Staging directory to compare against."),
    ) -> None:
        """Verify a zip archive against the staged tree."""
        archive = Path(zip_path)
        stage_dir = Path(stage)
        if not archive.is_file():
            raise typer.BadParameter(f"zip archive not found: {archive}")
        if not stage_dir.is_dir():
            raise typer.BadParameter(f"staging directory not found: {stage_dir}")

        problems = diff_zip_against_stage(archive, stage_dir)
        if problems:
            for line in problems:
                typer.echo(line, err=True)
            raise typer.Exit(code=1)

        typer.echo("OK")
