# src/mobile_post_office/core/logging/formatters.py
"""
Formatters referenced by builder.make_dict_config():

    JsonFormatter   one JSON object per line (production, log shippers)
    ColorFormatter  aligned, level-colored lines for terminals (LOG_FORMAT=text)
"""

import json
import logging
from logging import LogRecord
from typing import Any

from mobile_post_office.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came from `extra={...}`
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "request_id",
}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Emits the standard fields (timestamp, level, logger, message, pathname, lineno),
    the observability fields (service, env, version, request_id), exception/stack
    text when present, and every `extra` key. Extras that are not JSON
    serializable are stringified, so formatting never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "mobile-post-office",
                 datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        # ensure_ascii=False keeps TC/SC text readable in the log file
        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter:

        TIMESTAMP | LEVEL | LOGGER_NAME | REQUEST_ID | MESSAGE

    Only the level name is colored. Tracebacks are appended on the next lines.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",   # bold cyan on white
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red
        "RESET": "\033[0m",
    }

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]

        base = (
            f"{self.formatTime(record, self.datefmt)} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'request_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
