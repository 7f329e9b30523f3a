"""Command executor: run an external command and capture its output.

Commands run synchronously. The working directory is passed explicitly via
`cwd`, the process's own working directory is never changed here.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from stagepack.core.errors import CommandFailed
from stagepack.core.tracer import SectionTracer

Command = Union[str, Sequence[str]]


@dataclass(frozen=True)
class CommandResult:
    command: str
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _display(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join([str(c) for c in command])


class CommandExecutor:
    """Run shell command strings (or argv sequences) with combined output capture."""

    def __init__(self, tracer: Optional[SectionTracer] = None) -> None:
        self.tracer = tracer or SectionTracer()

    def run(self, command: Command, *, cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """Run `command` and return its result without checking the exit status.

        A string is run through the shell; a sequence is run as argv.
        """
        shown = _display(command)
        where = f" (in {cwd})" if cwd is not None else ""
        args = command if isinstance(command, str) else [str(c) for c in command]

        with self.tracer.section("exec"):
            self.tracer.debug(f"Executing: {shown}{where}")
            try:
                proc = subprocess.run(
                    args,
                    shell=isinstance(command, str),
                    cwd=None if cwd is None else str(cwd),
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    check=False,
                )
            except OSError as e:
                # The command could not be started at all (missing cwd or executable).
                raise CommandFailed(command=shown, returncode=-1, output=str(e)) from e
            self.tracer.debug(f"Exit status {proc.returncode}")
        return CommandResult(command=shown, returncode=proc.returncode, output=(proc.stdout or "").rstrip("\n"))

    def check(self, command: Command, *, cwd: Optional[Union[str, Path]] = None, operation: str = "exec") -> CommandResult:
        """Run `command` and raise CommandFailed on a non-zero exit status."""
        result = self.run(command, cwd=cwd)
        if not result.ok:
            raise CommandFailed(
                command=result.command,
                returncode=result.returncode,
                output=result.output,
                operation=operation,
            )
        return result
