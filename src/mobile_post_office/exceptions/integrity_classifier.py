"""
Tell a duplicate post apart from every other integrity failure.

The only integrity outcome with its own public code is a duplicate
(mobile_code, seq) pair. `classify_integrity_error()` reads the driver's
error code when there is one (Postgres SQLSTATE, MySQL errno) and falls back
to the message text for SQLite.
"""

import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class IntegrityKind(str, Enum):
    DUPLICATE = "duplicate"
    MISSING_VALUE = "missing_value"
    OTHER = "other"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
PG_SQLSTATE_KINDS = {
    "23505": IntegrityKind.DUPLICATE,
    "23502": IntegrityKind.MISSING_VALUE,
}

# ER_DUP_ENTRY, ER_BAD_NULL_ERROR
MYSQL_ERRNO_KINDS = {
    1062: IntegrityKind.DUPLICATE,
    1048: IntegrityKind.MISSING_VALUE,
}

_DUPLICATE_PHRASES = ("unique constraint", "unique failed", "unique violation", "duplicate")
_MISSING_VALUE_PHRASES = ("not null constraint", "null value in column")


def _from_sqlstate(orig) -> tuple[IntegrityKind | None, str | None]:
    # psycopg: pgcode + diag.constraint_name; asyncpg: sqlstate + constraint_name
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not sqlstate:
        return None, None
    diag = getattr(orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None) if diag else getattr(orig, "constraint_name", None)
    return PG_SQLSTATE_KINDS.get(sqlstate, IntegrityKind.OTHER), constraint


def _from_errno(orig) -> IntegrityKind | None:
    args = getattr(orig, "args", None) or ()
    if args and isinstance(args[0], int):
        return MYSQL_ERRNO_KINDS.get(args[0], IntegrityKind.OTHER)
    return None


def _from_message(message: str) -> IntegrityKind:
    lowered = message.lower()
    if any(phrase in lowered for phrase in _DUPLICATE_PHRASES):
        return IntegrityKind.DUPLICATE
    if any(phrase in lowered for phrase in _MISSING_VALUE_PHRASES):
        return IntegrityKind.MISSING_VALUE
    logger.debug("integrity.unrecognized_message", extra={"message_snippet": message[:200]})
    return IntegrityKind.OTHER


def classify_integrity_error(exc: IntegrityError) -> tuple[IntegrityKind, str | None]:
    """Returns (kind, constraint name when the driver reports one)."""
    orig = exc.orig

    kind, constraint = _from_sqlstate(orig)
    if kind is not None:
        return kind, constraint

    kind = _from_errno(orig)
    if kind is not None:
        return kind, None

    return _from_message(str(orig) if orig is not None else str(exc)), None


def is_unique_violation(exc: IntegrityError) -> bool:
    return classify_integrity_error(exc)[0] is IntegrityKind.DUPLICATE
