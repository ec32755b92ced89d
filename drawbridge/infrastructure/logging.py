"""
Centralized Logging

Architectural Intent:
- One handler on the "drawbridge" logger; every module logs through
  logging.getLogger(__name__) and never configures handlers itself
- Human-readable lines by default, JSON lines with --log-json
- Resource context (command, resource id and name) travels as logging
  ``extra`` fields so JSON output can be filtered per firewall or instance
- The AWS SDK is chatty at DEBUG; its loggers are held at INFO or above
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Optional, TextIO

LOGGER_NAME = "drawbridge"

HUMAN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# LogRecord attributes copied into JSON output when a caller passes them
CONTEXT_FIELDS = ("command", "resource_id", "resource_name")

SDK_LOGGERS = ("botocore", "boto3", "urllib3")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with any resource context attached."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def parse_level(name: str, default: int = logging.WARNING) -> int:
    """Translate a level name such as "info" to a logging constant."""
    level = logging.getLevelName(name.upper()) if name else default
    return level if isinstance(level, int) else default


def select_level(verbose: bool = False, debug: bool = False, configured: str = "") -> int:
    """--debug beats --verbose, which beats the configured level name."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return parse_level(configured)


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Install the single drawbridge handler, replacing any earlier one.

    Args:
        level: Logging level for drawbridge's own loggers.
        json_format: Emit JSON lines instead of human-readable text.
        stream: Destination; stderr unless given, so stdout stays reserved
            for command results.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(HUMAN_FORMAT))
    logger.addHandler(handler)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return logger
