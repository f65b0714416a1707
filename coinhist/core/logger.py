"""Logging infrastructure setup."""

import logging
import os
from pathlib import Path
from typing import Optional


def setup_logger(name: str = "coinhist", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a standard logger that writes to the console and,
    when requested, to a log file.

    Args:
        name (str): The name of the logger.
        log_file (Optional[str]): Path to a log file. No file handler is attached when None.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if setup is called multiple times
    if logger.handlers:
        return logger

    level_name = os.getenv("COINHIST_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Formatter includes timestamp, level, module, and message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(module)s.%(funcName)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def set_level(level: str) -> None:
    """Change the level of the package logger, e.g. from a config ``log_level`` key."""
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))


# Create a default logger instance
logger = setup_logger()
