"""Error kinds raised by the staging and packaging engine.

Every error carries the operation that failed and the offending path or
command, so a build log line is enough to locate the problem. None of these
are retried; they abort the current operation and propagate to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class PackagingError(RuntimeError):
    """Base class for all stagepack failures."""

    def __init__(self, message: str, *, operation: str, path: Optional[PathLike] = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.path = None if path is None else str(path)


class InvalidConfiguration(PackagingError, ValueError):
    """Bad staging directory, project root or generator option."""


class SourceNotFound(PackagingError):
    """A source file or directory to copy does not exist."""


class DirectoryCreateFailed(PackagingError):
    pass


class StagingResetFailed(PackagingError):
    pass


class StagingCreateFailed(PackagingError):
    pass


class CopyFailed(PackagingError):
    pass


class WriteFailed(PackagingError):
    pass


class CommandFailed(PackagingError):
    """An external command exited with a non-zero status.

    Attributes:
        command: the command as it was executed.
        returncode: the exit status.
        output: combined stdout/stderr captured from the command.
    """

    def __init__(self, *, command: str, returncode: int, output: str, operation: str = "exec") -> None:
        detail = output.strip()
        message = f"error executing command: {command} (exit {returncode})"
        if detail:
            message = f"{message} : {detail}"
        super().__init__(message, operation=operation)
        self.command = command
        self.returncode = returncode
        self.output = output


__all__ = [
    "PackagingError",
    "InvalidConfiguration",
    "SourceNotFound",
    "DirectoryCreateFailed",
    "StagingResetFailed",
    "StagingCreateFailed",
    "CopyFailed",
    "WriteFailed",
    "CommandFailed",
]
