"""Structured logging setup: structlog events rendered as JSON lines or console text."""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Mapping
from typing import Any, Final, TextIO

import structlog

_DEFAULT_LEVEL: Final[str] = "WARNING"
_DEFAULT_FORMAT: Final[str] = "text"

_CONFIGURE_LOCK = threading.Lock()


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    level: int | str | None = None,
    stream: TextIO | None = None,
) -> Any:
    """Configure structlog from ``[observability]`` settings and return a logger.

    Parameters
    ----------
    observability_config:
        Mapping compatible with ``[observability]`` in ``errorprone.toml``.
    level:
        Optional override for ``log_level`` (the CLI's ``--verbose``).
    stream:
        Output stream; defaults to stderr so stdout stays machine readable.
    """

    cfg = dict(observability_config or {})
    raw_level = level if level is not None else cfg.get("log_level", _DEFAULT_LEVEL)
    resolved_level = _parse_log_level(raw_level if isinstance(raw_level, (int, str)) else _DEFAULT_LEVEL)
    log_format = cfg.get("log_format", _DEFAULT_FORMAT)

    renderer: structlog.typing.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    with _CONFIGURE_LOCK:
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.format_exc_info,
                renderer,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
            logger_factory=structlog.PrintLoggerFactory(stream if stream is not None else sys.stderr),
            cache_logger_on_first_use=False,
        )
    return structlog.get_logger("errorprone_compile")


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


__all__ = ["setup_logging"]
