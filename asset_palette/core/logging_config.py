"""
Logging configuration for asset-palette.

JSON lines for deployed services (``LOG_JSON=true``, or LOG_JSON unset inside
AWS Lambda), a readable single-line format everywhere else (local API runs,
the command line tool).

Usage:
    from asset_palette.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)

    logger.info("Statement parsed", extra={'source': 'assets.csv', 'holdings': 12})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from asset_palette.core.config import settings

PACKAGE_LOGGER = 'asset_palette'
MANAGED_RUNTIME_ENV = 'AWS_LAMBDA_FUNCTION_NAME'


class JsonFormatter(logging.Formatter):
    """
    Format log records as one JSON object per line.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000+00:00",
        "level": "INFO",
        "logger": "asset_palette.services.csv_service",
        "message": "Statement parsed",
        "source": "assets.csv",
        ...
    }
    """

    # Attributes every LogRecord carries; anything else came in through ``extra``
    EXCLUDE_FIELDS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
        'taskName', 'message'
    }

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(timespec='milliseconds'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.EXCLUDE_FIELDS and key not in log_obj:
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        if record.exc_info:
            log_obj['exception'] = self.formatException(record.exc_info)

        # Statement labels are Japanese; keep them readable in the log stream
        return json.dumps(log_obj, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """
    Human-readable formatter.

    Output format:
    2024-01-15 10:30:00 INFO  [services.csv_service] Statement parsed (source=assets.csv, holdings=12)
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        level = record.levelname.ljust(5)
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelname, '')
            level = f"{color}{level}{self.RESET}"

        logger_name = record.name
        if logger_name.startswith(PACKAGE_LOGGER + '.'):
            logger_name = logger_name[len(PACKAGE_LOGGER) + 1:]

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in JsonFormatter.EXCLUDE_FIELDS
        ]
        extra_str = f" ({', '.join(extras)})" if extras else ""

        output = f"{timestamp} {level} [{logger_name}] {record.getMessage()}{extra_str}"

        if record.exc_info:
            output += f"\n{self.formatException(record.exc_info)}"

        return output


def setup_logging(
    json_format: Optional[bool] = None,
    level: Optional[str] = None,
    logger_name: Optional[str] = PACKAGE_LOGGER
) -> None:
    """
    Configure logging for the application.

    Args:
        json_format: Use JSON format (True) or human-readable (False).
                    Defaults to the LOG_JSON setting; when that is unset too,
                    JSON is used only inside AWS Lambda.
        level: Log level name. Defaults to the LOG_LEVEL setting.
        logger_name: Logger to configure. Defaults to the package logger so
                     uvicorn's own handlers are left alone; None means root.
    """
    if json_format is None:
        json_format = settings.LOG_JSON
    if json_format is None:
        json_format = MANAGED_RUNTIME_ENV in os.environ

    if level is None:
        level = settings.LOG_LEVEL
    level_no = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level_no)

    # Repeated calls (app factory in tests, CLI) must not stack handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level_no)
    handler.setFormatter(JsonFormatter() if json_format else HumanFormatter())
    logger.addHandler(handler)

    if logger_name:
        logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
