# src/mobile_post_office/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration and optionally
wire a background QueueListener to decouple log IO from the event loop.

This module:
 - builds a dictConfig-compatible mapping from Settings
 - allows a queue-backed logging mode (LOG_USE_QUEUE) where producers only enqueue
   records and a background thread (QueueListener) does the writes
 - provides a NonBlockingQueueHandler that drops records instead of blocking
   when a bounded queue is full
 - stamps producer-side filters (RequestIdFilter, RedactFilter) on the QueueHandler
   so contextvars and redaction run in the producing context
 - exposes stop_queue_logging() to flush & stop the background listener at shutdown.

Configuration knobs (Settings):
 - LOG_USE_QUEUE, LOG_QUEUE_MAX_SIZE (0 = unbounded), LOG_QUEUE_BLOCKING
 - LOG_TO_STDOUT, LOG_DIR, LOG_FORMAT, LOG_LEVEL, ENABLE_SQL_LOGGING, ENV
"""

from __future__ import annotations

import logging
import logging.config
import queue as _queue
import threading
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Optional

from mobile_post_office.config.settings import Settings
from mobile_post_office.utils.logging import get_project_name

from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

# Running QueueListener and its queue, so they can be stopped at shutdown
_QUEUE_LISTENER: Optional[QueueListener] = None
_QUEUE: Optional[_queue.Queue] = None

_DROPPED_LOGS_COUNT = 0
_DROPPED_LOGS_LOCK = threading.Lock()


class NonBlockingQueueHandler(QueueHandler):
    """
    QueueHandler variant that never blocks producers when a bounded queue is full.

    When the queue is full the record is dropped, a module-level counter is
    incremented (see get_queue_stats()) and handleError() is called.
    """

    def emit(self, record: logging.LogRecord) -> None:
        global _DROPPED_LOGS_COUNT
        try:
            self.queue.put_nowait(self.prepare(record))
        except _queue.Full:
            with _DROPPED_LOGS_LOCK:
                _DROPPED_LOGS_COUNT += 1
            self.handleError(record)


def get_queue_stats() -> dict:
    """Small diagnostics about queue usage."""
    with _DROPPED_LOGS_LOCK:
        return {"dropped_logs": _DROPPED_LOGS_COUNT, "queue_present": _QUEUE is not None}


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color in text mode) and "json"
      - filters: "request_id", "redact"
      - handlers: console + (file/error_file when writing to LOG_DIR, else error_console)
      - loggers: root, uvicorn.error, uvicorn.access, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(default="mobile-post-office"),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            # SQL logging may contain row data
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging using settings and optionally switch to queue-backed logging.

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Register a RequestIdFilter on the root logger as a safety net.
      4. If settings.LOG_USE_QUEUE: move the real root handlers behind a QueueListener
         and attach a (NonBlocking)QueueHandler with producer-side filters to the root.
    """
    global _QUEUE_LISTENER, _QUEUE

    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    # a previous queue setup (tests, reloads) must not keep a stale listener thread
    stop_queue_logging()

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(RequestIdFilter())

    if not settings.LOG_USE_QUEUE:
        return

    root_logger = logging.getLogger()
    current_handlers = list(root_logger.handlers)
    if not current_handlers:
        return

    # Detach the real handlers from every logger so they only run in the listener thread
    handlers_to_move = set(current_handlers)
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            for h in list(logger_obj.handlers):
                if h in handlers_to_move:
                    logger_obj.removeHandler(h)
    for h in list(root_logger.handlers):
        if h in handlers_to_move:
            root_logger.removeHandler(h)

    max_size = settings.LOG_QUEUE_MAX_SIZE or 0
    log_queue: _queue.Queue = _queue.Queue(max_size) if max_size > 0 else _queue.Queue()

    if max_size > 0 and not settings.LOG_QUEUE_BLOCKING:
        qh: QueueHandler = NonBlockingQueueHandler(log_queue)
    else:
        qh = QueueHandler(log_queue)

    listener = QueueListener(log_queue, *current_handlers, respect_handler_level=True)
    listener.start()

    # These run in the producer context, where the request_id contextvar is set
    qh.addFilter(RequestIdFilter())
    qh.addFilter(RedactFilter())
    root_logger.addHandler(qh)

    _QUEUE_LISTENER = listener
    _QUEUE = log_queue


def stop_queue_logging() -> None:
    """Stop the QueueListener (flushing queued records) and clear module refs."""
    global _QUEUE_LISTENER, _QUEUE
    listener = _QUEUE_LISTENER
    if listener is None:
        return

    try:
        listener.stop()
    except Exception:
        logging.getLogger(__name__).exception("Failed to stop QueueListener cleanly")
    finally:
        _QUEUE_LISTENER = None
        _QUEUE = None
