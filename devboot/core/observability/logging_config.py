"""
Logging setup for the devboot command line.

``main.cli`` calls ``setup_logging`` once per invocation; modules log
through ``logging.getLogger(__name__)`` and never configure handlers.

Console level: ``--debug``/``--verbose``/``--quiet``, else
``DEVBOOT_LOG_LEVEL``, else WARNING. The console format gets richer as
the level drops, so a plain run prints bare messages and ``--debug``
prints logger names and line numbers.

``DEVBOOT_LOG_FILE`` adds a file handler with full detail, at
``DEVBOOT_LOG_FILE_LEVEL`` (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOG_LEVEL_ENV = "DEVBOOT_LOG_LEVEL"
LOG_FILE_ENV = "DEVBOOT_LOG_FILE"
LOG_FILE_LEVEL_ENV = "DEVBOOT_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (upper bound level, format, date format), checked in order
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT_FORMAT = "%(message)s"

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Stdlib loggers that chatter at INFO while installs run in threads
_NOISY_LOGGERS = ("asyncio", "concurrent.futures")


def resolve_log_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if env is None else env
    return env.get(LOG_LEVEL_ENV) or "WARNING"


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT_FORMAT, None
    for bound, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= bound:
            fmt, datefmt = candidate, candidate_datefmt
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DETAILED, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers with devboot's.

    Args:
        level: Console level name. Unknown names mean WARNING.
        log_file: Also log to this file when set.
        log_file_level: File level name (default: ``level``).
        quiet_third_party: Hold ``_NOISY_LOGGERS`` at WARNING unless the
            console is at DEBUG.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A broken stderr pipe must not turn log calls into tracebacks
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Numeric level for a level name; WARNING for anything unknown."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
