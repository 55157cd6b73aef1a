# src/mobile_post_office/core/logging/middleware.py
"""
Request ID middleware for FastAPI / Starlette.

Each request gets an id: the incoming `X-Request-ID` header when it is a valid
UUID, otherwise a fresh UUID4. The id is stored in the request_id contextvar
(picked up by RequestIdFilter) and echoed in the `X-Request-ID` response header.

Register it before the routers:
    app.add_middleware(RequestIDMiddleware)
"""

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"


def _pick_request_id(incoming: str | None) -> str:
    # only accept UUIDs from clients; anything else could inject text into the logs
    if incoming:
        try:
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        rid = _pick_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
