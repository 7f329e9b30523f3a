"""stagepack core: staging lifecycle, copying, command execution and tracing.

This package must not import autoload/bundle/CLI to avoid circular dependencies.
"""

from __future__ import annotations

from .command import CommandExecutor, CommandResult
from .copy import DEFAULT_EXTENSIONS, FileCopier, iter_tree, should_copy
from .errors import (
    CommandFailed,
    CopyFailed,
    DirectoryCreateFailed,
    InvalidConfiguration,
    PackagingError,
    SourceNotFound,
    StagingCreateFailed,
    StagingResetFailed,
    WriteFailed,
)
from .staging import StagingContext, collapse_separators, initialize_staging
from .tracer import SectionTracer

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "DEFAULT_EXTENSIONS",
    "FileCopier",
    "iter_tree",
    "should_copy",
    "PackagingError",
    "InvalidConfiguration",
    "SourceNotFound",
    "DirectoryCreateFailed",
    "StagingResetFailed",
    "StagingCreateFailed",
    "CopyFailed",
    "WriteFailed",
    "CommandFailed",
    "StagingContext",
    "collapse_separators",
    "initialize_staging",
    "SectionTracer",
]
