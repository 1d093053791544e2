"""Process-wide logging setup used by the command line entry points."""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def configure(log_level: int, log_path: Path | None = None, prefix: str | None = "webpgallery") -> None:
    """Configure the package logger.

    Args:
        log_level: The desired verbosity level.
        log_path: Optional file that receives a copy of every record.
        prefix: Name of the logger to configure.
    """
    logger = logging.getLogger(prefix)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    for log_filter in list(logger.filters):
        logger.removeFilter(log_filter)

    logger.setLevel(log_level)

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if log_path is not None:
        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
