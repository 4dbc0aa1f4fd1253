"""Logging configuration for boardmill."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path

# Package-level logger name
LOGGER_NAME = "boardmill"

ProgressCallback = Callable[[int, int, str], None]


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger for a boardmill module.

    Args:
        name: Module name (e.g., __name__). If None, returns root boardmill logger.

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    # Handle both 'boardmill.layout' and 'layout' styles
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class ConsoleFormatter(logging.Formatter):
    """Console formatter that keeps INFO output plain.

    Records logged with ``extra={"size": ..., "phase": ...}`` get that
    context appended, so per-size failures read well in a terminal.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        size = getattr(record, "size", None)
        phase = getattr(record, "phase", None)
        if size and phase:
            message = f"{message} ({size}, {phase})"
        elif size:
            message = f"{message} ({size})"

        if record.levelno == logging.INFO:
            return message
        elif record.levelno == logging.WARNING:
            return f"Warning: {message}"
        elif record.levelno >= logging.ERROR:
            return f"Error: {message}"
        elif record.levelno == logging.DEBUG:
            return f"[debug] {message}"
        return super().format(record)


class InfoFilter(logging.Filter):
    """Filter that only allows records below WARNING level."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def setup_logging(
    verbosity: int = 0,
    quiet: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure logging for the boardmill CLI.

    Args:
        verbosity: 0=normal, 1=verbose (-v), 2=debug (-vv)
        quiet: If True, suppress all output except errors
        log_file: Optional file path for logging
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if quiet:
        console_level = logging.ERROR
    elif verbosity >= 2:
        console_level = logging.DEBUG
    else:
        console_level = logging.INFO

    # Capture everything at logger level, filter at handlers
    logger.setLevel(logging.DEBUG)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(console_level)
    stdout_handler.setFormatter(ConsoleFormatter())
    stdout_handler.addFilter(InfoFilter())
    logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)


def is_quiet_mode() -> bool:
    """Check if logging is in quiet mode (only ERROR level visible on console)."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream == sys.stdout:
            return handler.level >= logging.ERROR
    return False


def progress_logger(logger: logging.Logger | None = None) -> ProgressCallback:
    """Build an ``on_progress`` callback that logs ``[index/total] name``.

    The callback is silent in quiet mode.
    """
    target = logger or get_logger("progress")

    def report(index: int, total: int, name: str) -> None:
        if is_quiet_mode():
            return
        target.info("[%d/%d] %s", index, total, name)

    return report
