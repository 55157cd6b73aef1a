import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError, DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from .integrity_classifier import IntegrityKind, classify_integrity_error
from .base import ApiError, DuplicateRecordError, ServerError

logger = logging.getLogger(__name__)

_CONNECTIVITY_KEYWORDS = (
    "connection refused",
    "connection lost",
    "connection reset",
    "lost connection",
    "can't connect",
    "could not connect",
    "server closed the connection",
    "connection is closed",
    "timed out",
)


# -----------------------
# Classification helpers
# -----------------------

def is_connectivity_error(exc: BaseException) -> bool:
    """
    True when `exc` means the store is unreachable (as opposed to a bad statement or bad data).
    """
    if isinstance(exc, (DisconnectionError, InterfaceError, ConnectionError, TimeoutError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        msg = str(exc.orig if exc.orig is not None else exc).lower()
        return any(keyword in msg for keyword in _CONNECTIVITY_KEYWORDS)
    return False


def map_store_error(exc: BaseException, model_name: str | None = None) -> ApiError:
    """
    Turn an arbitrary store failure into a client-safe taxonomy error (not raised).

    Integrity errors are logged here; the caller decides how loudly to log the rest.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, IntegrityError):
        try:
            raise_mapped_integrity_error(exc, model_name)
        except ApiError as mapped:
            return mapped
    if is_connectivity_error(exc):
        return ServerError(transient=True)
    return ServerError()


def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to a taxonomy error and raise it.

    Only unique violations have a dedicated public code (DuplicateRecord);
    every other constraint failure is reported as a generic ServerError.
    """
    kind, constraint_name = classify_integrity_error(exc)
    model_part = model_name or "Record"

    if kind is IntegrityKind.DUPLICATE:
        # duplicates are an expected client-level outcome (409), INFO is enough
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "constraint": constraint_name},
        )
        raise DuplicateRecordError("Duplicate record", constraint=constraint_name) from exc

    if kind is IntegrityKind.MISSING_VALUE:
        logger.warning(
            "mapper.missing_value",
            extra={"model": model_part, "constraint": constraint_name},
        )
        raise ServerError(f"{model_part} violates a database constraint", constraint=constraint_name) from exc

    raw = str(exc.orig) if exc.orig is not None else str(exc)
    logger.warning("mapper.unknown_integrity_error", extra={"model": model_part, "constraint": constraint_name})
    logger.debug("mapper.unknown_integrity_raw", extra={"model": model_part, "raw": raw})
    raise ServerError(f"{model_part} database integrity error.") from exc


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__):
            ... DB ops that may raise ...

    Rolls back on any error. Taxonomy errors raised inside the block propagate
    unchanged; store errors are mapped; anything else becomes a generic ServerError.
    """
    try:
        yield
    except ApiError:
        await _safe_rollback(db, model_name)
        raise
    except Exception as exc:
        await _safe_rollback(db, model_name)
        mapped = map_store_error(exc, model_name)
        if isinstance(mapped, ServerError) and mapped.transient:
            logger.error("mapper.store_unavailable", extra={"model": model_name, "error_type": type(exc).__name__})
        elif not isinstance(exc, IntegrityError):
            logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise mapped from exc


async def _safe_rollback(db: AsyncSession, model_name: str | None) -> None:
    try:
        await db.rollback()
    except Exception:
        logger.exception("Failed to rollback session", extra={"model": model_name})
