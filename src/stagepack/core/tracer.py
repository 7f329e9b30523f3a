"""Section tracer: a LIFO stack of labels scoping debug messages.

Every public engine operation runs inside a section:

    with tracer.section("copy"):
        tracer.debug("Copied 3 files")

The context manager pops the label on every exit path, so a failing operation
never leaves the stack unbalanced. `close_all()` drains sections that were
opened with `enter()` and never left (the Packager keeps a long-lived
"staging" section open between calls).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from stagepack.core.logging import get_logger


class SectionTracer:
    def __init__(self, logger_name: str = "stagepack") -> None:
        self._sections: list[str] = []
        self._log = get_logger(logger_name)

    @property
    def sections(self) -> tuple[str, ...]:
        return tuple(self._sections)

    @property
    def current(self) -> Optional[str]:
        return self._sections[-1] if self._sections else None

    def __len__(self) -> int:
        return len(self._sections)

    def debug(self, message: str, **fields: object) -> None:
        """Emit a trace line tagged with the innermost section label."""
        if self._sections:
            fields["section"] = self._sections[-1]
        self._log.debug(message, **fields)

    def enter(self, label: str) -> None:
        if not label:
            raise ValueError("section label must be non-empty")
        self._sections.append(label)
        self.debug("Starting")

    def leave(self) -> None:
        if self._sections:
            self.debug("Completed")
            self._sections.pop()

    @contextmanager
    def section(self, label: str) -> Iterator["SectionTracer"]:
        depth = len(self._sections)
        self.enter(label)
        try:
            yield self
        finally:
            # Sections opened inside this block and never left are closed too.
            while len(self._sections) > depth:
                self.leave()

    def close_all(self) -> None:
        while self._sections:
            self.leave()
