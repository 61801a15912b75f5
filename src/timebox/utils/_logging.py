"""Structured logging for the supervisor.

Supervision logs are diagnostics about timebox itself, never output of the
supervised command, so they go to stderr or to a log file and stdout is left
alone. `create_logger` returns a standalone structlog logger: nothing here
calls ``structlog.configure``, so an application that embeds timebox keeps
its own logging setup.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "TIMEBOX_DEBUG"
DEFAULT_LOG_LEVEL: int = logging.WARNING


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Translate a level name into a ``logging`` level number.

    Unknown names fall back to WARNING. With `respect_env`, a non-empty
    TIMEBOX_DEBUG forces DEBUG whatever `level` says.
    """
    if respect_env and os.environ.get(DEBUG_ENV_VAR):
        return logging.DEBUG
    return logging.getLevelNamesMapping().get(level.upper(), DEFAULT_LOG_LEVEL)


def _rotating_logger(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Logger:
    # One private stdlib logger per file; handlers from an earlier call for
    # the same name are replaced, not stacked
    name = f"timebox.{path.stem}.{id(path)}"
    stdlib_logger = logging.getLogger(name)
    stdlib_logger.handlers.clear()
    stdlib_logger.propagate = False
    stdlib_logger.setLevel(level)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    stdlib_logger.addHandler(handler)
    return stdlib_logger


def _open_output(
    log_file: str,
    level: int,
    max_bytes: int | None,
    backup_count: int | None,
) -> object:
    """Return the raw logger that receives rendered lines."""
    if not log_file:
        return structlog.PrintLogger(file=sys.stderr)

    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    if max_bytes is None or backup_count is None:
        return structlog.WriteLogger(file=path.open("a"))
    return _rotating_logger(path, level, max_bytes, backup_count)


def _build_processors(log_format: LogFormatType) -> "list[Processor]":  # noqa: UP037
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def create_logger(
    *,
    level: str = "warning",
    log_format: LogFormatType = "text",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger the supervisor reports lifecycle events to.

    Args:
        level: Threshold name (debug, info, warning, error). TIMEBOX_DEBUG
            overrides it with debug.
        log_format: ``"json"`` for one JSON object per line, ``"text"`` for
            ``key=value`` lines.
        log_file: Append to this file instead of writing to stderr. Missing
            parent directories are created.
        max_bytes: Rotate the file at this size. Only used together with
            `backup_count`.
        backup_count: Rotated files to keep. Only used together with
            `max_bytes`.

    Returns:
        A FilteringBoundLogger that drops records below the threshold.
    """
    effective_level = _log_level_from_string(level, respect_env=True)
    raw_logger = _open_output(log_file, effective_level, max_bytes, backup_count)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=_build_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )
