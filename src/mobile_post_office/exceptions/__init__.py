from .base import (
    ErrorCode,
    ERROR_MESSAGES,
    ApiError,
    MissingRequiredFieldError,
    NoUpdatableFieldsError,
    InvalidParameterFormatError,
    InvalidTimeFormatError,
    InvalidLangValueError,
    InvalidNumericValueError,
    RecordNotFoundError,
    DuplicateRecordError,
    UnauthorizedError,
    ServerError,
)

# exceptions/
# ├── base.py                    # error taxonomy (codes, messages, ApiError subclasses)
# ├── integrity_classifier.py    # driver-level constraint classification
# └── mapper.py                  # store errors -> taxonomy errors, db_error_handler()

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
