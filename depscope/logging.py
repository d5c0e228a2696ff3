"""Logging utilities for depscope.

Every module logs through ``get_logger("<component>")``; console lines carry
the component so parse, scan and ranking output can be told apart.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "depscope"

CONSOLE_FORMAT = "[depscope:%(component)s] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the depscope hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class _ComponentFilter(logging.Filter):
    """Adds ``record.component``: the logger name below ``depscope``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = _LOGGER_NAME + "."
        record.component = record.name[len(prefix):] if record.name.startswith(prefix) else "core"
        return True


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure the depscope logger with console output and optional file sink.

    ``quiet`` limits the console to warnings; the file sink, when given,
    still records at the verbose/info level. Parent directories of
    *log_file* are created.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated calls don't duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.WARNING if quiet else level)
    stream_handler.addFilter(_ComponentFilter())
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
