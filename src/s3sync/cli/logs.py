"""Logging setup for the s3sync CLI."""

from __future__ import annotations

import logging
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s:%(lineno)d %(message)s"

# Chatty AWS libraries kept at WARNING
QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Handler:
    """Route s3sync log records to a single stream handler.

    Replaces any handler previously installed on the "s3sync" logger.

    Args:
        level: Level name for s3sync loggers.
        stream: Output stream (stderr if None).

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    s3sync_logger = logging.getLogger("s3sync")
    for existing in s3sync_logger.handlers[:]:
        s3sync_logger.removeHandler(existing)
    s3sync_logger.addHandler(handler)
    s3sync_logger.setLevel(level.upper())
    s3sync_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
