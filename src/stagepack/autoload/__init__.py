"""Class-map autoloader generation for staged trees."""

from __future__ import annotations

from .classmap import ClassMap, ClassMapEntry, class_name_for, iter_entries, scan_class_map
from .writer import DEFAULT_FILENAME, render_autoloader, validate_module_filename, write_autoloader

__all__ = [
    "ClassMap",
    "ClassMapEntry",
    "class_name_for",
    "iter_entries",
    "scan_class_map",
    "DEFAULT_FILENAME",
    "render_autoloader",
    "validate_module_filename",
    "write_autoloader",
]
