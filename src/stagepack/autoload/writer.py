"""Render and write the class-map bootstrap module.

The generated module:
- declares MAPPING (dotted name -> stage-relative path) and REQUIRED as
  literal tables that `ast.literal_eval` can read back;
- appends a finder to `sys.meta_path`. Being last, it is only consulted for
  names the default import machinery could not resolve, and it loads the
  mapped file on first import, never eagerly;
- executes the REQUIRED files, in order, when the module is imported.

File contents are read through the bootstrap module's own `__loader__`, which
works for a plain directory and for a zipapp bundle alike.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from stagepack.autoload.classmap import ClassMap, scan_class_map
from stagepack.core.errors import InvalidConfiguration, WriteFailed
from stagepack.core.logging import get_logger
from stagepack.core.tracer import SectionTracer

DEFAULT_FILENAME = "autoloader.py"

log = get_logger("stagepack.autoload")

_HEADER = '''# Generated by stagepack. Do not edit.
"""Class-map autoloader for a staged distribution."""

import importlib
import os
import sys
import types
from importlib.machinery import ModuleSpec
'''

_RUNTIME = '''
_ROOT = os.path.dirname(os.path.abspath(__file__))
_LOADER = globals().get("__loader__")


def _location(relative):
    return os.path.join(_ROOT, *relative.split("/"))


def _read(path):
    if _LOADER is not None and hasattr(_LOADER, "get_data"):
        return _LOADER.get_data(path)
    with open(path, "rb") as f:
        return f.read()


class ClassMapFinder:
    """Meta path finder and loader backed by MAPPING."""

    def __init__(self, mapping, root):
        self.mapping = dict(mapping)
        self.root = root
        self.packages = set()
        # "pkg.__init__" entries also stand for the package "pkg" itself.
        self.inits = {}
        for name in self.mapping:
            parts = name.split(".")
            for i in range(1, len(parts)):
                self.packages.add(".".join(parts[:i]))
            if len(parts) > 1 and parts[-1] == "__init__":
                self.inits[".".join(parts[:-1])] = self.mapping[name]
        self.packages.difference_update(self.mapping)
        self.packages.difference_update(self.inits)

    def find_spec(self, fullname, path=None, target=None):
        if fullname in self.mapping:
            return ModuleSpec(fullname, self, origin=_location(self.mapping[fullname]))
        if fullname in self.inits:
            origin = _location(self.inits[fullname])
            spec = ModuleSpec(fullname, self, origin=origin, is_package=True)
            spec.submodule_search_locations = [os.path.dirname(origin)]
            return spec
        if fullname in self.packages:
            return ModuleSpec(fullname, self, is_package=True)
        return None

    def create_module(self, spec):
        return None

    def exec_module(self, module):
        origin = module.__spec__.origin
        if origin is None:
            return
        module.__file__ = origin
        exec(compile(_read(origin), origin, "exec"), module.__dict__)


def install():
    """Append the class-map finder to sys.meta_path once per bootstrap location."""
    for finder in sys.meta_path:
        if isinstance(getattr(finder, "root", None), str) and finder.root == _ROOT and hasattr(finder, "mapping"):
            return finder
    finder = ClassMapFinder(MAPPING, _ROOT)
    sys.meta_path.append(finder)
    return finder


def load(name):
    """Import a mapped name, loading its file on first use."""
    return importlib.import_module(name)


def _require(relative):
    name = relative[:-3] if relative.endswith(".py") else relative
    name = name.replace("/", ".")
    if name in MAPPING:
        return importlib.import_module(name)
    path = _location(relative)
    module = types.ModuleType(name)
    module.__file__ = path
    sys.modules[name] = module
    exec(compile(_read(path), path, "exec"), module.__dict__)
    return module


install()

for _relative in REQUIRED:
    _require(_relative)
'''


def validate_module_filename(filename: str) -> str:
    """Return the module name for `filename`; it must be an importable `*.py` name."""
    if "/" in filename or not filename.endswith(".py"):
        raise InvalidConfiguration(
            f"autoloader filename must be a top-level .py file: {filename!r}",
            operation="create_autoloader",
            path=filename,
        )
    module_name = filename[:-3]
    if not module_name.isidentifier():
        raise InvalidConfiguration(
            f"autoloader filename is not an importable module name: {filename!r}",
            operation="create_autoloader",
            path=filename,
        )
    return module_name


def render_autoloader(mapping: ClassMap, files: Sequence[str] = ()) -> str:
    """Render the bootstrap module source for `mapping` and required `files`."""
    lines = [_HEADER, "MAPPING = {"]
    for name, path in mapping.items():
        lines.append(f"    {name!r}: {path!r},")
    lines.append("}")
    lines.append("")
    lines.append("REQUIRED = [")
    for path in files:
        lines.append(f"    {str(path)!r},")
    lines.append("]")
    return "\n".join(lines) + "\n" + _RUNTIME


def write_autoloader(
    stage_dir: Union[str, Path],
    files: Sequence[str] = (),
    filename: str = DEFAULT_FILENAME,
    *,
    tracer: Optional[SectionTracer] = None,
) -> Path:
    """Scan `stage_dir` and write the bootstrap module at its root.

    Raises:
        InvalidConfiguration: filename is not an importable module file name.
        WriteFailed: the destination could not be written.
    """
    tracer = tracer or SectionTracer()
    validate_module_filename(filename)
    root = Path(stage_dir)
    dest = root / filename

    with tracer.section("autoloader"):
        tracer.debug("Creating classmap autoloader")
        tracer.debug(f"Collecting valid Python files from {root}")
        mapping = scan_class_map(root, exclude=[filename])
        for name in mapping:
            tracer.debug(f"Found {name}")

        tracer.debug(f"Writing autoloader to {dest}")
        text = render_autoloader(mapping, files)
        try:
            with dest.open("w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as e:
            raise WriteFailed(f"unable to open {dest} for writing: {e}", operation="create_autoloader", path=dest) from e

    log.info("autoloader", path=str(dest), classes=len(mapping), required=len(files))
    return dest
