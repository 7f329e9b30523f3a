"""Command-line interface: `stagepack build`, `stagepack verify`, `stagepack version`."""

from __future__ import annotations

import typer

app = typer.Typer(
    name="stagepack",
    add_completion=False,
    no_args_is_help=True,
    help="Stage project files and package them as a zipapp bundle and/or zip archive.",
)


@app.callback()
def _callback() -> None:
    """Stage, bundle and zip a project for distribution."""
    return


@app.command("version")
def version() -> None:
    """Print the installed stagepack version."""
    from stagepack import __version__

    typer.echo(__version__)


def _register_commands() -> None:
    # Each command module attaches itself to `app` through register().
    from stagepack.cli.commands import build as build_cmd
    from stagepack.cli.commands import verify as verify_cmd

    for module in (build_cmd, verify_cmd):
        module.register(app)


_register_commands()
