"""
Logger Utility for the posture validator
Provides consistent logging configuration
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logger(verbosity: int = 1,
                 log_file: Optional[str] = None,
                 logger_name: str = "posture",
                 console: Optional[Console] = None) -> logging.Logger:
    """Set up logger with console and optional file output."""

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if verbosity >= 2 else logging.INFO)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with rich formatting
    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=(verbosity >= 2),
        rich_tracebacks=True,
        markup=False
    )

    if verbosity <= 0:
        console_level = logging.WARNING
    elif verbosity >= 2:
        console_level = logging.DEBUG
    else:
        console_level = logging.INFO
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)

        # Detailed format for file
        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        file_handler.setFormatter(logging.Formatter(file_format))

        logger.addHandler(file_handler)
        logger.debug(f"Detailed logs saved to: {log_path}")

    # asyncpg and asyncio are chatty at debug level
    for name in ("asyncpg", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING if verbosity < 2 else logging.INFO)

    return logger
