"""Logging setup for benchboard.

The console shows the runner's progress lines as they are::

    [2/5] layout/v1.1: running...
    [2/5] layout/v1.1: 12ms

Warnings and errors carry their level name, and DEBUG detail is
indented under the progress line it belongs to, tagged with the
emitting logger.  The optional log file keeps every record at DEBUG
with timestamps.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "benchboard"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ConsoleFormatter(logging.Formatter):
    """Level-dependent console layout around bare INFO progress lines."""

    _formats = {
        logging.DEBUG: "    %(name)s: %(message)s",
        logging.INFO: "%(message)s",
    }
    _alert_format = "%(levelname)s: %(message)s"

    def __init__(self) -> None:
        super().__init__()
        self._by_level = {level: logging.Formatter(fmt) for level, fmt in self._formats.items()}
        self._alert = logging.Formatter(self._alert_format)

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return self._alert.format(record)
        formatter = self._by_level.get(record.levelno, self._by_level[logging.DEBUG])
        return formatter.format(record)


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root benchboard logger.

    Args:
        verbose: Show DEBUG detail on the console.
        quiet: Only show warnings and errors. *verbose* wins if both are set.
        log_file: Also write every record, timestamped, to this path.

    Returns:
        The ``benchboard`` logger.  Calling this again replaces its handlers.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(_console_level(verbose, quiet))
    console.setFormatter(ConsoleFormatter())
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger ``benchboard.<name>``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
