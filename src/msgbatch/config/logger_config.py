"""Logger configuration for msgbatch."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .settings import LoggingConfig


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None, log_file: Optional[Union[str, Path]] = None) -> None:
    """Configure loguru logger for console and optional file output.

    Sets up structured logging with:
    - Console output on stderr with colored output
    - Optional file output with rotation, retention and compression
    - Level taken from the explicit argument, then the config
    """
    config = config or LoggingConfig()
    level = (level or config.level).upper()
    log_file = log_file or config.log_file

    # Remove default loguru handler
    logger.remove()

    logger.add(
        sink=lambda msg: print(msg, end="", file=sys.stderr),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            sink=str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            rotation=config.rotation,
            retention=config.retention,
            compression="gz",  # Compress rotated logs
            enqueue=True,  # Thread-safe logging
        )

        logger.info(f"File logging enabled: {log_file}")
        logger.info(f"Log level: {level}")
