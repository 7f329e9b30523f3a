"""stagepack: stage a project's files and package them for distribution.

A run copies the distributable files into a fresh staging directory, writes a
class-map autoloader for the staged Python sources and packages the stage as a
zipapp bundle and/or a zip archive.
"""

from __future__ import annotations

from stagepack.core.errors import PackagingError
from stagepack.packager import Packager, PackagerConfig

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Packager",
    "PackagerConfig",
    "PackagingError",
]
