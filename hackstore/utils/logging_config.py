"""Logging configuration for hackstore.

Configures the root logger to write to the terminal (stdout) and, when a log
directory is configured, to an event log file inside it.
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
EVENT_LOG_FILENAME = "event_log.log"


def setup_logging(level: str = "INFO", log_dir: Path | str | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name ("DEBUG", "INFO", "WARNING", ...).
        log_dir: Optional directory for the event log file. Created if missing.
    """
    logger = logging.getLogger()
    log_level = logging.getLevelName(level.upper())
    logger.setLevel(log_level)

    # Check if handlers already exist to avoid duplicates
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / EVENT_LOG_FILENAME, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logging.info("Logging initialized. Output directed to terminal and %s.", log_dir / EVENT_LOG_FILENAME)
    else:
        logging.info("Logging initialized. Output directed to terminal.")


def get_logger(name: str) -> logging.Logger:
    """Get a named logger.

    Args:
        name: Name of the logger (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
