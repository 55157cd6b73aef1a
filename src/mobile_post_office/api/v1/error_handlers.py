"""
FastAPI exception handlers that render every failure in the response envelope.

- Services raise mobile_post_office.exceptions.* (ApiError subclasses).
- Request validation failures (bad page, limit, lang, id, body) are mapped onto the taxonomy.
- Bare HTTP exceptions (e.g. unknown route) get the closest taxonomy code.
- Anything else becomes a generic ServerError without internal detail.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mobile_post_office.exceptions import (
    ApiError,
    DuplicateRecordError,
    InvalidLangValueError,
    InvalidParameterFormatError,
    RecordNotFoundError,
    ServerError,
    UnauthorizedError,
)
from .envelope import error_response

logger = logging.getLogger(__name__)

_HTTP_STATUS_TO_ERROR = {
    400: InvalidParameterFormatError,
    404: RecordNotFoundError,
    409: DuplicateRecordError,
    401: UnauthorizedError,
}


def _render(exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status(), content=error_response(exc))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.http_status() >= 500:
        logger.error("api.error %s %s: %s", request.method, request.url.path, exc,
                     extra={"err_code": exc.error_code.value})
    else:
        logger.info("api.rejected %s %s: %s", request.method, request.url.path, exc,
                    extra={"err_code": exc.error_code.value})
    return _render(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Map FastAPI/pydantic validation failures to the taxonomy.

    A bad `lang` is InvalidLangValue; everything else is InvalidParameterFormat.
    """
    errors = exc.errors()
    fields = [str(err["loc"][-1]) for err in errors if err.get("loc")]

    if "lang" in fields:
        mapped: ApiError = InvalidLangValueError("lang must be one of: en, tc, sc, all", fields=["lang"])
    else:
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors)
        mapped = InvalidParameterFormatError(details or None, fields=fields)

    logger.info("api.validation_failed %s %s", request.method, request.url.path, extra={"fields": fields})
    return _render(mapped)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_cls = _HTTP_STATUS_TO_ERROR.get(exc.status_code)
    if error_cls is RecordNotFoundError:
        mapped: ApiError = RecordNotFoundError(message=str(exc.detail))
    elif error_cls is not None:
        mapped = error_cls(str(exc.detail))
    else:
        mapped = ServerError(str(exc.detail))

    response = _render(mapped)
    response.status_code = exc.status_code
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api.unhandled %s %s", request.method, request.url.path)
    return _render(ServerError())


# Helper to register all handlers on an app (call this from the app factory)
def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
