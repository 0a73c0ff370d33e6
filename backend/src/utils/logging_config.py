"""
Structured logging configuration for the Meetboard backend.

JSON lines with file rotation in production, human-readable console output
everywhere else.

Loggers (all under the ``meetboard.`` namespace):
- api: HTTP requests, error responses
- services: lifecycle transitions, materialization, gallery sweep
- db: repository failures, migrations
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

LOGGER_NAMES = ("api", "services", "db")

# Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each record as one JSON object.

    Fields: timestamp, level, logger, message, module, function, line,
    exception (when present) and every key passed through ``extra=``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output in development.

    Example: [2026-03-14 10:30:45] INFO - meetboard.services - Approved event evt_...
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _get_log_level() -> int:
    """Log level from MEETBOARD_LOG_LEVEL (default INFO)."""
    level_str = os.environ.get("MEETBOARD_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _is_production() -> bool:
    """True when MEETBOARD_ENV=production."""
    return os.environ.get("MEETBOARD_ENV", "development").lower() == "production"


def _get_log_dir() -> Path:
    """Log directory from MEETBOARD_LOG_DIR (default ./logs), created if missing."""
    log_dir = Path(os.environ.get("MEETBOARD_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _build_handler(logger_name: str, is_prod: bool, log_level: int) -> logging.Handler:
    if is_prod:
        handler = logging.handlers.RotatingFileHandler(
            _get_log_dir() / f"{logger_name}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
    handler.setLevel(log_level)
    return handler


def configure_logging() -> Dict[str, logging.Logger]:
    """
    Configure the named backend loggers.

    Returns:
        Mapping of short names ("api", "services", "db") to loggers
    """
    log_level = _get_log_level()
    is_prod = _is_production()

    loggers = {}
    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(f"meetboard.{logger_name}")
        logger.setLevel(log_level)
        logger.handlers.clear()
        logger.addHandler(_build_handler(logger_name, is_prod, log_level))
        # pytest's caplog needs propagation outside production
        logger.propagate = not is_prod
        loggers[logger_name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by short name.

    Raises:
        ValueError: If logger name is not recognized

    Example:
        >>> logger = get_logger("services")
        >>> logger.info("Approved event", extra={"event_id": "evt_..."})
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers.keys())}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """(Re)configure logging; called from the application lifespan."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
