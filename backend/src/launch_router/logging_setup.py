"""Loguru sink configuration, applied once by the app entry point."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from .config import LAUNCH_LOG_FILE, LAUNCH_LOG_LEVEL


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    logger.remove()
    # colorize=False keeps non-TTY output free of ANSI codes
    logger.add(
        sys.stdout,
        level=level or LAUNCH_LOG_LEVEL,
        colorize=False,
        format="{time:HH:mm:ss} | {level: <8} | {message}",
    )
    log_file = log_file or LAUNCH_LOG_FILE
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level or LAUNCH_LOG_LEVEL, rotation="10 MB", retention="7 days")
