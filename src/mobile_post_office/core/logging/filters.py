# src/mobile_post_office/core/logging/filters.py
"""
Logging filters.

RequestIdFilter makes every LogRecord carry a `request_id`. The id lives in a
ContextVar, which (unlike threading.local) stays isolated per request across
`await` points; RequestIDMiddleware sets it at the start of each HTTP request.
Outside a request (CLI tools, the import pipeline) the id is "-".

RedactFilter masks sensitive `extra` attributes before any handler sees them.
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """
    Set the request id in the current context and return the token to allow reset.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token):
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee `record.request_id`: an explicit `extra={"request_id": ...}` wins,
    then the contextvar, then the sentinel "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "api_key", "x_api_key", "authorization"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
