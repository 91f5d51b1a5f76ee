"""Centralized logging configuration for the competition engine."""
from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

ROOT_LOGGER = "league_engine"


def setup_logging(
    log_dir: Path | None = None,
    level: int | str = logging.INFO,
    log_to_file: bool = False,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger with console and optional file handlers.

    Modules log through logging.getLogger(__name__), so everything under
    league_engine.* propagates here.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level name or number (default: INFO)
        log_to_file: Whether to write a timestamped log file
        log_to_console: Whether to log to stdout

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Re-running setup must not stack handlers
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple_formatter = logging.Formatter("%(levelname)s: %(name)s: %(message)s")

    if log_to_file:
        if log_dir is None:
            log_dir = Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"league_engine_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger; unconfigured loggers fall back to logging defaults."""
    return logging.getLogger(name)
