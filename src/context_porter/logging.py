"""Logging configuration for context-porter.

Provides centralized logging setup with file output to ~/context-porter/logs/.
The exporters themselves never log; callers (service, stores, CLI) do.

Component loggers are children of the "context_porter" package logger, so
configure_package_logging() routes the store, history, handoff and CLI records
into a single log file.
"""

import logging
import sys
from pathlib import Path

# Default log directory
DEFAULT_LOG_DIR = Path.home() / "context-porter" / "logs"

PACKAGE_LOGGER = "context_porter"
PACKAGE_LOG_FILE = "context-porter.log"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _attach_handlers(
    logger: logging.Logger,
    log_file: Path,
    level: int,
    console: bool,
) -> None:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Console handler (optional)
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def setup_logging(
    name: str,
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Configure logging for a single context-porter component.

    Creates a logger with a file handler and an optional stderr handler.
    Log files are written to <log_dir>/<name>.log.

    Args:
        name: Logger name (used for log filename)
        log_dir: Directory for log files (defaults to ~/context-porter/logs/)
        level: Logging level (defaults to INFO)
        console: Whether to also log to stderr (defaults to True)

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        log_dir = DEFAULT_LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
    logger.setLevel(level)

    # Already configured by an earlier call
    if logger.handlers:
        return logger

    _attach_handlers(logger, log_dir / f"{name}.log", level, console)
    return logger


def configure_package_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = False,
) -> logging.Logger:
    """Send every context-porter component's records to <log_dir>/context-porter.log.

    Unlike setup_logging(), a later call with a different log_dir moves the
    output: handlers from the earlier call are closed and replaced. This is
    what the CLI wants when each invocation may load a different config.

    Args:
        log_dir: Directory for the log file (defaults to ~/context-porter/logs/)
        level: Logging level (defaults to INFO)
        console: Whether to also log to stderr (defaults to False)

    Returns:
        The "context_porter" package logger
    """
    if log_dir is None:
        log_dir = DEFAULT_LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = (log_dir / PACKAGE_LOG_FILE).resolve()

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach_handlers(logger, log_file, level, console)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a context-porter component.

    Returns the named logger without attaching handlers. Its records reach a
    file once configure_package_logging() or setup_logging() has run.

    Args:
        name: Logger name (will be prefixed with 'context_porter.')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
