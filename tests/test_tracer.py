from __future__ import annotations

import pytest

from stagepack.core.tracer import SectionTracer


def test_enter_leave_is_lifo() -> None:
    tracer = SectionTracer()
    tracer.enter("outer")
    tracer.enter("inner")
    assert tracer.sections == ("outer", "inner")
    assert tracer.current == "inner"

    tracer.leave()
    assert tracer.current == "outer"
    tracer.leave()
    assert tracer.current is None

    # Leaving an empty stack is a no-op.
    tracer.leave()
    assert len(tracer) == 0


def test_section_pops_on_error() -> None:
    tracer = SectionTracer()
    tracer.enter("staging")

    with pytest.raises(RuntimeError):
        with tracer.section("copy"):
            tracer.enter("left-open")
            raise RuntimeError("boom")

    assert tracer.sections == ("staging",)


def test_close_all_drains_stack() -> None:
    tracer = SectionTracer()
    for label in ("a", "b", "c"):
        tracer.enter(label)
    tracer.close_all()
    assert tracer.sections == ()


def test_empty_label_rejected() -> None:
    with pytest.raises(ValueError):
        SectionTracer().enter("")


def test_debug_tags_innermost_section(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = SectionTracer()
    calls: list[tuple[str, dict]] = []

    class _Recorder:
        def debug(self, message: str, **fields: object) -> None:
            calls.append((message, fields))

    monkeypatch.setattr(tracer, "_log", _Recorder())

    tracer.debug("no section")
    with tracer.section("zip"):
        tracer.debug("inside")

    assert calls[0] == ("no section", {})
    assert calls[1] == ("Starting", {"section": "zip"})
    assert calls[2] == ("inside", {"section": "zip"})
    assert calls[3] == ("Completed", {"section": "zip"})
