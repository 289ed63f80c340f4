from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional


LOGGER_NAME = "filewatcher"


def setup_logging(
    log_dir: Optional[Path] = None,
    verbose: bool = False,
    level: str = "INFO",
) -> logging.Logger:
    """
    Set up logging to the console and, when log_dir is given, to a file.

    Args:
        log_dir: Directory for log files (None = console only)
        verbose: Force DEBUG output on the console
        level: Console level name when not verbose

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Repeated calls (tests, re-entry through main()) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_level = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"filewatcher_{timestamp}.log"

        # File handler - always detailed
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(levelname)s - %(message)s"
        ))
        logger.addHandler(file_handler)
        logger.debug(f"Logging to: {log_file}")

    return logger
