"""
Process-wide logging for the ``rootless`` command.

``main.py`` calls :func:`setup_logging` once.  Modules log through
``logging.getLogger(__name__)`` and never configure handlers themselves.

The console level comes from ``--debug``/``--verbose``/``--quiet``,
then ``ROOTLESS_LOG_LEVEL``, then WARNING.  Set ``ROOTLESS_LOG_FILE``
to keep a transcript of an install; ``ROOTLESS_LOG_FILE_LEVEL`` lets
the file record more than the console shows.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LEVEL_ENV_VAR = "ROOTLESS_LOG_LEVEL"
FILE_ENV_VAR = "ROOTLESS_LOG_FILE"
FILE_LEVEL_ENV_VAR = "ROOTLESS_LOG_FILE_LEVEL"

_DEFAULT_LEVEL = logging.WARNING

# Console format per threshold, most detailed first.  Plain messages at
# WARNING keep normal runs readable next to click's own output.
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(name)s: %(message)s", "%H:%M:%S"),
]
_PLAIN_FORMAT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    *,
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name from the CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(LEVEL_ENV_VAR, logging.getLevelName(_DEFAULT_LEVEL))


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with a console and optional file handler.

    Args:
        level: Console level name.  Unknown names mean WARNING.
        log_file: Path of a transcript file; ``~`` is expanded.
        log_file_level: Level for the file.  Defaults to ``level``.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must let through whatever the most verbose handler wants.
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _PLAIN_FORMAT, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(os.path.expanduser(path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    numeric = logging.getLevelName(level.upper()) if level else _DEFAULT_LEVEL
    return numeric if isinstance(numeric, int) else _DEFAULT_LEVEL
