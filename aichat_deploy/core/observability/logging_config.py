"""
Logging configuration — one setup call per process, from main.py.

Modules log through ``logger = logging.getLogger(__name__)`` and never
configure handlers themselves.

Console level precedence:
    --debug  >  --verbose  >  --quiet  >  AICHAT_DEPLOY_LOG_LEVEL  >  WARNING

A second, usually more verbose, file handler is added when
AICHAT_DEPLOY_LOG_FILE is set (level from AICHAT_DEPLOY_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LOG_LEVEL = "AICHAT_DEPLOY_LOG_LEVEL"
ENV_LOG_FILE = "AICHAT_DEPLOY_LOG_FILE"
ENV_LOG_FILE_LEVEL = "AICHAT_DEPLOY_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

# (threshold, format, datefmt), most verbose first
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(name: str | None) -> int:
    """Numeric level for a level name; WARNING for empty or unknown names."""
    value = getattr(logging, (name or "").upper(), None) if name else None
    return value if isinstance(value, int) else logging.WARNING


def console_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LOG_LEVEL) or "WARNING"


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_DEFAULT)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (stderr) and the optional file handler.

    Replaces any handlers already on the root logger, so calling it again
    reconfigures rather than duplicates output.
    """
    numeric = parse_level(level)

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric)
    console.setFormatter(_console_formatter(numeric))
    handlers.append(console)

    if log_file:
        file_numeric = parse_level(log_file_level) if log_file_level else numeric
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_numeric)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        handlers.append(file_handler)

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def setup_logging_from_env(level: str, environ: Mapping[str, str] | None = None) -> None:
    """``setup_logging`` with the file settings taken from the environment."""
    env = os.environ if environ is None else environ
    setup_logging(
        level=level,
        log_file=env.get(ENV_LOG_FILE) or None,
        log_file_level=env.get(ENV_LOG_FILE_LEVEL) or None,
    )
