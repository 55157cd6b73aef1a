"""
Application error taxonomy.

Every failure the record API or the import pipeline can report belongs to a
closed set of (code, message) pairs. Each entry is an `ApiError` subclass that
knows:

- its stable error code (e.g. '0201'),
- a default client-safe message,
- the HTTP status it should be rendered with.

Services raise these exceptions at the point of detection; the API layer turns
them into the response envelope via `to_payload()` / `http_status()`.
"""

from enum import Enum
from typing import Iterable


class ErrorCode(str, Enum):
    SUCCESS = "0000"

    # Validation errors (01xx)
    MISSING_REQUIRED_FIELD = "0101"
    NO_UPDATABLE_FIELDS = "0102"
    INVALID_PARAMETER_FORMAT = "0103"
    INVALID_TIME_FORMAT = "0104"
    INVALID_LANG_VALUE = "0105"
    INVALID_NUMERIC_VALUE = "0106"

    # Not found (02xx)
    RECORD_NOT_FOUND = "0201"

    # Conflict (03xx)
    DUPLICATE_RECORD = "0301"

    # Server error (04xx)
    SERVER_ERROR = "0401"

    # Auth (05xx)
    UNAUTHORIZED = "0501"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.SUCCESS: "No error",
    ErrorCode.MISSING_REQUIRED_FIELD: "Missing required field(s)",
    ErrorCode.NO_UPDATABLE_FIELDS: "No updatable fields provided in PUT",
    ErrorCode.INVALID_PARAMETER_FORMAT: "Invalid parameter format or limit exceeded",
    ErrorCode.INVALID_TIME_FORMAT: "Invalid time format (expect HH:MM)",
    ErrorCode.INVALID_LANG_VALUE: "Invalid lang value (not en|tc|sc|all)",
    ErrorCode.INVALID_NUMERIC_VALUE: "Invalid numeric value or out of range",
    ErrorCode.RECORD_NOT_FOUND: "Record not found",
    ErrorCode.DUPLICATE_RECORD: "Duplicate / unique constraint violation",
    ErrorCode.SERVER_ERROR: "Database or internal server error",
    ErrorCode.UNAUTHORIZED: "Unauthorized",
}


class ApiError(Exception):
    """
    Base exception for every error in the taxonomy.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of input field names related to the error (e.g. ['latitude'])
    - constraint: optional DB constraint name (for logs only, never sent to clients)
    """

    error_code: ErrorCode = ErrorCode.SERVER_ERROR

    # Map error code -> HTTP status. Anything missing falls back to 400.
    ERROR_CODE_TO_STATUS = {
        ErrorCode.MISSING_REQUIRED_FIELD: 400,
        ErrorCode.NO_UPDATABLE_FIELDS: 400,
        ErrorCode.INVALID_PARAMETER_FORMAT: 400,
        ErrorCode.INVALID_TIME_FORMAT: 400,
        ErrorCode.INVALID_LANG_VALUE: 400,
        ErrorCode.INVALID_NUMERIC_VALUE: 400,
        ErrorCode.RECORD_NOT_FOUND: 404,
        ErrorCode.DUPLICATE_RECORD: 409,
        ErrorCode.SERVER_ERROR: 500,
        ErrorCode.UNAUTHORIZED: 401,
    }

    def __init__(self, message: str | None = None, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None):
        self.message = message or ERROR_MESSAGES[self.error_code]
        super().__init__(self.message)
        self.fields = list(fields) if fields else None
        self.constraint = constraint

    def __str__(self) -> str:
        base = self.message
        parts = [f"code: {self.error_code.value}"]
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        return f"{base} ({'; '.join(parts)})"

    def to_payload(self) -> dict:
        """
        Return the error variant of the response header.

        Shape:
            {"success": False, "err_code": "0201", "err_msg": "record not found for id 7"}

        The constraint name is intentionally left out; it is for logs only.
        """
        return {
            "success": False,
            "err_code": self.error_code.value,
            "err_msg": self.message,
        }

    def http_status(self) -> int:
        return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)


class MissingRequiredFieldError(ApiError):
    error_code = ErrorCode.MISSING_REQUIRED_FIELD


class NoUpdatableFieldsError(ApiError):
    error_code = ErrorCode.NO_UPDATABLE_FIELDS


class InvalidParameterFormatError(ApiError):
    error_code = ErrorCode.INVALID_PARAMETER_FORMAT


class InvalidTimeFormatError(ApiError):
    error_code = ErrorCode.INVALID_TIME_FORMAT


class InvalidLangValueError(ApiError):
    error_code = ErrorCode.INVALID_LANG_VALUE


class InvalidNumericValueError(ApiError):
    error_code = ErrorCode.INVALID_NUMERIC_VALUE


class RecordNotFoundError(ApiError):
    error_code = ErrorCode.RECORD_NOT_FOUND

    def __init__(self, record_id: int | None = None, message: str | None = None):
        if message is None and record_id is not None:
            message = f"record not found for id {record_id}"
        super().__init__(message)
        self.record_id = record_id


class DuplicateRecordError(ApiError):
    error_code = ErrorCode.DUPLICATE_RECORD


class UnauthorizedError(ApiError):
    error_code = ErrorCode.UNAUTHORIZED


class ServerError(ApiError):
    """
    Catch-all for store and internal failures.

    `transient=True` marks a lost/refused store connection: the request may
    succeed if retried later, so it is rendered as 503 instead of 500.
    """

    error_code = ErrorCode.SERVER_ERROR

    def __init__(self, message: str | None = None, *, transient: bool = False,
                 constraint: str | None = None):
        if message is None and transient:
            message = "Database connection error. Please try again later."
        super().__init__(message, constraint=constraint)
        self.transient = transient

    def http_status(self) -> int:
        return 503 if self.transient else 500


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "ApiError",
    "MissingRequiredFieldError",
    "NoUpdatableFieldsError",
    "InvalidParameterFormatError",
    "InvalidTimeFormatError",
    "InvalidLangValueError",
    "InvalidNumericValueError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "UnauthorizedError",
    "ServerError",
]
