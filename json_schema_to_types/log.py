"""
Logging setup for the command line entry point.

Diagnostics never go to stdout: stdout carries the generated source so the
generator can be piped into a formatter.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(verbose: bool = False, log_file: str | Path | None = None) -> None:
    """Configure logging.

    Args:
        verbose: Log debug messages instead of warnings only
        log_file: Redirect diagnostic output to this file instead of stderr
    """
    level = "DEBUG" if verbose else "WARNING"

    # Remove default handler
    logger.remove()

    if log_file is not None:
        logger.add(
            Path(log_file),
            format=FILE_FORMAT,
            level=level,
            encoding="utf-8",
        )
    else:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=False,
        )
