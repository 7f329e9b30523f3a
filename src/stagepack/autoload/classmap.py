"""Class-map discovery over a staged tree.

Every `*.py` file under the stage yields one entry whose name is its relative
path with `/` turned into `.` and the `.py` suffix stripped:

    src/pkg/Widget.py  ->  "src.pkg.Widget"

Two files can derive the same name (`a/b.py` and `a.b.py`). The later one in
walk order wins without a warning; the walk is sorted, so the winner is stable
from run to run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from stagepack.core.copy import iter_tree

SOURCE_SUFFIX = ".py"
NAMESPACE_SEPARATOR = "."

ClassMap = dict[str, str]


@dataclass(frozen=True)
class ClassMapEntry:
    name: str
    path: str


def class_name_for(relative_path: str) -> str:
    """Derive the dotted class-map key for a POSIX path relative to the stage."""
    stem = relative_path[: -len(SOURCE_SUFFIX)] if relative_path.endswith(SOURCE_SUFFIX) else relative_path
    return stem.replace("/", NAMESPACE_SEPARATOR)


def iter_entries(stage_dir: Union[str, Path], exclude: Iterable[str] = ()) -> list[ClassMapEntry]:
    """Return class-map entries for all source files under `stage_dir` in walk order.

    `exclude` holds stage-relative POSIX paths to leave out (the bootstrap
    module being generated).
    """
    root = Path(stage_dir)
    skip = set(exclude)
    entries: list[ClassMapEntry] = []
    for path in iter_tree(root):
        if path.suffix != SOURCE_SUFFIX:
            continue
        rel = path.relative_to(root).as_posix()
        if rel in skip:
            continue
        entries.append(ClassMapEntry(name=class_name_for(rel), path=rel))
    return entries


def scan_class_map(stage_dir: Union[str, Path], exclude: Iterable[str] = ()) -> ClassMap:
    """Build the name -> relative path mapping; duplicates overwrite earlier entries."""
    mapping: ClassMap = {}
    for entry in iter_entries(stage_dir, exclude=exclude):
        mapping[entry.name] = entry.path
    return mapping
