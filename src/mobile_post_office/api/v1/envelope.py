"""
Response envelope shared by every endpoint.

    success: {"header": {"success": true, "message": "..."}, "result": ..., "meta": {...}}
    failure: {"header": {"success": false, "err_code": "0201", "err_msg": "..."}, "result": null}

`meta` is only present on list responses.
"""

from typing import Any

from mobile_post_office.exceptions import ApiError


def success_response(message: str, result: Any = None, meta: dict | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "header": {"success": True, "message": message},
        "result": result,
    }
    if meta is not None:
        body["meta"] = meta
    return body


def error_response(exc: ApiError) -> dict[str, Any]:
    return {"header": exc.to_payload(), "result": None}
