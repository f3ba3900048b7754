"""Logging configuration for the pair selector."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Prefix of messages announcing a new best pair
SELECTION_TAG = "SELECTION"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def is_selection_record(record: dict) -> bool:
    """Whether a log record announces a best pair change."""
    return record["message"].startswith(f"{SELECTION_TAG}:")


def add_file_sinks(
    log_file: str,
    log_level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> Path:
    """
    Add the rotating run log and, beside it, the selection history log.

    Args:
        log_file: Path to the run log
        log_level: Level for the run log
        rotation: When to rotate the run log
        retention: How long to keep rotated run logs

    Returns:
        Path of the selection history log
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path,
        level=log_level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
    )

    # One line per best pair change, kept for a month
    selections_path = log_path.parent / "selections.log"
    logger.add(
        selections_path,
        level="INFO",
        filter=is_selection_record,
        format="{time:YYYY-MM-DD HH:mm:ss} | {message}",
        rotation="1 day",
        retention="1 month",
    )

    logger.debug(f"Logging to {log_path} (selections in {selections_path.name})")
    return selections_path


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """
    Replace loguru's default handler with a console sink.

    File sinks are added too when log_file is given; otherwise call
    add_file_sinks once the log location is known (e.g. after loading
    config).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to the run log
        rotation: When to rotate the run log
        retention: How long to keep rotated run logs
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT)

    if log_file:
        add_file_sinks(log_file, log_level, rotation, retention)

    logger.info(f"Logging initialized. Level: {log_level}")
