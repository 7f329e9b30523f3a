"""Structured logging for stagepack.

All trace output goes to stderr so that stdout stays free for command results
(paths of built artifacts, `OK` from `verify`).

Configuration is read from environment variables unless passed explicitly:
- STAGEPACK_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- STAGEPACK_LOG_FORMAT: console | json (default: console)

Usage:
    from stagepack.core.logging import configure_logging, get_logger
    configure_logging(level="DEBUG")
    log = get_logger("stagepack.copy")
    log.info("copied", total=3)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Literal, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_configured = False
_defaulted = False

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
_FORMATS = ("console", "json")


def _prefix_section(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Render the innermost tracer section as a `[label]` prefix on the event."""
    section = event_dict.pop("section", None)
    if section:
        event_dict["event"] = f"[{section}] {event_dict.get('event', '')}"
    return event_dict


def _apply(level: Optional[str], format: Optional[str], replace_handlers: bool) -> None:
    log_level = (level or os.environ.get("STAGEPACK_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("STAGEPACK_LOG_FORMAT", "console")).lower()
    if log_level not in _LEVELS:
        raise ValueError(f"unknown log level: {log_level}")
    if log_format not in _FORMATS:
        raise ValueError(f"unknown log format: {log_format}")

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors += [
            _prefix_section,
            structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Without replace_handlers an application's existing root handlers are kept.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, force=replace_handlers)
    logging.getLogger("stagepack").setLevel(getattr(logging, log_level))


def configure_logging(
    level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR"]] = None,
    format: Optional[Literal["console", "json"]] = None,
    force: bool = False,
) -> None:
    """Configure structlog on top of stdlib logging, writing to stderr.

    Subsequent calls are no-ops unless force=True.
    """
    global _configured

    if _configured and not force:
        return
    _apply(level, format, replace_handlers=True)
    _configured = True


def get_logger(name: str, **initial: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, bound with `initial` values.

    When nothing has called configure_logging yet, the environment defaults are
    applied first so library use never falls back to structlog's stdout output.
    """
    global _defaulted

    if not (_configured or _defaulted):
        _apply(None, None, replace_handlers=False)
        _defaulted = True
    return structlog.get_logger(name, **initial)
