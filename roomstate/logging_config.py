"""
Structured logging configuration for roomstate.

Provides JSON-formatted logs with a room_id field so diagnostics from
different rooms can be told apart.

Environment Variables:
    ROOMSTATE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    ROOMSTATE_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from roomstate.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, room_id="my-room")
    logger.warning("Event with different roomId received")
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure root logger with structured logging.

    Arguments override the environment:
    - ROOMSTATE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - ROOMSTATE_LOG_FORMAT: json, text (default: json)

    Logs go to stderr so the CLI's --json output on stdout stays parseable.
    """
    log_level = (level or os.getenv("ROOMSTATE_LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("ROOMSTATE_LOG_FORMAT", "json")).lower()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    resolved = level_map.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(RoomIdFilter())

    if log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(room_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [room_id=%(room_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str, room_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger carrying room_id for correlation.

    Example:
        logger = get_logger(__name__, room_id="my-room")
        logger.info("Replaying events")
        # Output (JSON): {"timestamp": "...", "level": "INFO", "message": "Replaying events", "room_id": "my-room"}
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"room_id": room_id or "N/A"})


class RoomIdFilter(logging.Filter):
    """
    Logging filter that adds room_id to all log records.

    Ensures every record has a room_id field, even if not logged via get_logger().
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "room_id"):
            record.room_id = "N/A"  # type: ignore
        return True
