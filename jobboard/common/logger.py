"""
Logging setup for the job board.

setup_logging() configures the root logger once per process (the Flask app
and the seed script call it at startup). Services that want their messages
tagged with the operation they belong to use get_logger():

    logger = get_logger(__name__, operation="store")
    logger.error("Error fetching jobs: timed out")
    # 2025-01-01 12:00:00 [ERROR] jobboard.services.job_board_service: [store] Error fetching jobs: timed out
"""

import json
import logging
import sys
from typing import Optional

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("pymongo", "httpx", "httpcore", "openai", "urllib3")


class OperationLogger(logging.LoggerAdapter):
    """Prefixes every message with `[operation]`."""

    def process(self, msg, kwargs):
        operation = self.extra.get("operation")
        if operation:
            return f"[{operation}] {msg}", kwargs
        return msg, kwargs


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        format: "simple" for human-readable lines, "json" for one object per line
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str, operation: Optional[str] = None) -> OperationLogger:
    """Logger for `name` whose messages carry the operation tag."""
    return OperationLogger(logging.getLogger(name), {"operation": operation})
