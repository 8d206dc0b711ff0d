"""Logging for faaah commands.

Every module logs through the ``faaah`` package logger. The console
handler writes to stderr, leaving stdout to ``faaah watch``'s pass-through,
and shows warnings only unless ``-v`` is given: ``faaah play`` runs inside
the run tool's output panel. A configured log file receives records at the
configured level.
"""

import logging
import sys
from pathlib import Path

from faaah.config import Config

LOGGER_NAME = "faaah"

# 2025-01-27 10:30:45 [INFO] faaah.engine: message
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "faaah: %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handlers: list[logging.Handler] = []


def parse_level(name: str, default: int = logging.INFO) -> int:
    """Numeric level for a name like ``"debug"``; ``default`` if unknown."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def console_level(config: Config, verbosity: int = 0) -> int:
    """Console threshold for a number of ``-v`` flags."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return max(logging.WARNING, parse_level(config.log_level))


def setup_logging(config: Config, verbosity: int = 0) -> logging.Logger:
    """Configure the package logger for one command.

    Calling it again replaces the handlers it installed earlier.

    Args:
        config: Supplies ``log_level`` and the optional ``log_file``.
        verbosity: Number of ``-v`` flags given on the command line.

    Returns:
        The ``faaah`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _remove_handlers(logger)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level(config, verbosity))
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    _add_handler(logger, console)

    if config.log_file:
        log_path = Path(config.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(parse_level(config.log_level))
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        _add_handler(logger, file_handler)

    logger.setLevel(min(handler.level for handler in _handlers))
    logger.propagate = False
    return logger


def reset_logging() -> None:
    """Remove installed handlers and restore propagation. Used for testing."""
    logger = logging.getLogger(LOGGER_NAME)
    _remove_handlers(logger)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def _add_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.addHandler(handler)
    _handlers.append(handler)


def _remove_handlers(logger: logging.Logger) -> None:
    while _handlers:
        handler = _handlers.pop()
        logger.removeHandler(handler)
        handler.close()
