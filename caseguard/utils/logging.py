"""Logging configuration for CaseGuard.

Provides consistent logging across all modules with:
- Console output with colors (via Rich)
- File logging for debugging
- Configurable log levels

Log records must never contain passphrases, keys or decrypted case data.
"""

import hashlib
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


# Default log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_output: bool = True,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to
        rich_output: Whether to use Rich for console output

    Returns:
        Configured package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("caseguard")
    logger.setLevel(log_level)
    logger.handlers.clear()

    if rich_output:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)  # File gets all messages
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (e.g., "caseguard.vault")

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def redact_identity(identity: str) -> str:
    """Short stable digest of an identity, for log lines."""
    return hashlib.sha256(identity.encode("utf-8")).hexdigest()[:12]
