from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from mobile_post_office.exceptions import (
    ERROR_MESSAGES,
    ApiError,
    DuplicateRecordError,
    ErrorCode,
    InvalidLangValueError,
    MissingRequiredFieldError,
    RecordNotFoundError,
    ServerError,
    UnauthorizedError,
)
from mobile_post_office.exceptions.integrity_classifier import IntegrityKind, classify_integrity_error, is_unique_violation
from mobile_post_office.exceptions.mapper import db_error_handler, is_connectivity_error, map_store_error


def integrity_error(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO mobile_posts ...", {}, orig)


class PgError(Exception):
    """Looks like a psycopg error: SQLSTATE in `pgcode`, constraint in `diag`."""

    def __init__(self, pgcode: str, constraint_name: str):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint_name)


class TestTaxonomy:

    @pytest.mark.parametrize("code, value", [
        (ErrorCode.SUCCESS, "0000"),
        (ErrorCode.MISSING_REQUIRED_FIELD, "0101"),
        (ErrorCode.NO_UPDATABLE_FIELDS, "0102"),
        (ErrorCode.INVALID_PARAMETER_FORMAT, "0103"),
        (ErrorCode.INVALID_TIME_FORMAT, "0104"),
        (ErrorCode.INVALID_LANG_VALUE, "0105"),
        (ErrorCode.INVALID_NUMERIC_VALUE, "0106"),
        (ErrorCode.RECORD_NOT_FOUND, "0201"),
        (ErrorCode.DUPLICATE_RECORD, "0301"),
        (ErrorCode.SERVER_ERROR, "0401"),
    ])
    def test_codes_are_stable(self, code, value):
        assert code.value == value

    def test_every_code_has_a_default_message(self):
        assert set(ERROR_MESSAGES) == set(ErrorCode)

    @pytest.mark.parametrize("error, status", [
        (MissingRequiredFieldError(), 400),
        (InvalidLangValueError(), 400),
        (RecordNotFoundError(3), 404),
        (DuplicateRecordError(), 409),
        (UnauthorizedError(), 401),
        (ServerError(), 500),
        (ServerError(transient=True), 503),
    ])
    def test_http_status(self, error, status):
        assert error.http_status() == status

    def test_payload_hides_constraint(self):
        error = DuplicateRecordError("Duplicate record", constraint="uq_mobile_posts_mobile_code_seq")

        assert error.to_payload() == {"success": False, "err_code": "0301", "err_msg": "Duplicate record"}
        assert "uq_mobile_posts_mobile_code_seq" in str(error)

    def test_default_messages(self):
        assert ApiError().message == ERROR_MESSAGES[ErrorCode.SERVER_ERROR]
        assert RecordNotFoundError(5).message == "record not found for id 5"
        assert "try again" in ServerError(transient=True).message


class TestIntegrityClassifier:

    def test_sqlite_unique_message(self):
        exc = integrity_error(Exception("UNIQUE constraint failed: mobile_posts.mobile_code, mobile_posts.seq"))

        assert classify_integrity_error(exc) == (IntegrityKind.DUPLICATE, None)
        assert is_unique_violation(exc)

    def test_postgres_sqlstate(self):
        exc = integrity_error(PgError("23505", "uq_mobile_posts_mobile_code_seq"))
        assert classify_integrity_error(exc) == (IntegrityKind.DUPLICATE, "uq_mobile_posts_mobile_code_seq")

    def test_not_null_is_not_a_duplicate(self):
        exc = integrity_error(Exception("NOT NULL constraint failed: mobile_posts.imported_at"))

        assert classify_integrity_error(exc)[0] is IntegrityKind.MISSING_VALUE
        assert not is_unique_violation(exc)

    def test_mysql_errno(self):
        exc = integrity_error(Exception(1062, "Duplicate entry 'MO1-1' for key 'uq_mobile_posts_mobile_code_seq'"))
        assert is_unique_violation(exc)

    def test_unrecognized_is_other(self):
        exc = integrity_error(Exception("CHECK constraint failed"))
        assert classify_integrity_error(exc) == (IntegrityKind.OTHER, None)


class TestMapper:

    def test_unique_violation_maps_to_duplicate(self):
        mapped = map_store_error(integrity_error(PgError("23505", "uq_mobile_posts_mobile_code_seq")), "Post")

        assert isinstance(mapped, DuplicateRecordError)
        assert mapped.constraint == "uq_mobile_posts_mobile_code_seq"

    def test_other_integrity_errors_are_server_errors(self):
        mapped = map_store_error(integrity_error(Exception("CHECK constraint failed")), "Post")
        assert type(mapped) is ServerError

    def test_lost_connection_is_transient(self):
        exc = OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))

        assert is_connectivity_error(exc)
        mapped = map_store_error(exc)
        assert isinstance(mapped, ServerError) and mapped.transient

    def test_bad_statement_is_not_connectivity(self):
        assert not is_connectivity_error(OperationalError("SELECT", {}, Exception("no such table: x")))
        assert not is_connectivity_error(DataError("INSERT", {}, Exception("value too long")))

    def test_taxonomy_errors_pass_through(self):
        error = RecordNotFoundError(1)
        assert map_store_error(error) is error


@pytest.mark.asyncio
class TestDbErrorHandler:

    async def test_rolls_back_and_maps(self):
        db = AsyncMock()

        with pytest.raises(DuplicateRecordError):
            async with db_error_handler(db, "Post"):
                raise integrity_error(Exception("UNIQUE constraint failed: mobile_posts.seq"))

        db.rollback.assert_awaited_once()

    async def test_taxonomy_error_propagates_unchanged(self):
        db = AsyncMock()
        error = RecordNotFoundError(9)

        with pytest.raises(RecordNotFoundError) as exc_info:
            async with db_error_handler(db, "Post"):
                raise error

        assert exc_info.value is error
        db.rollback.assert_awaited_once()

    async def test_unexpected_error_becomes_generic_server_error(self):
        db = AsyncMock()

        with pytest.raises(ServerError) as exc_info:
            async with db_error_handler(db, "Post"):
                raise RuntimeError("boom")

        assert exc_info.value.transient is False
        assert "boom" not in exc_info.value.message

    async def test_failed_rollback_does_not_hide_the_error(self):
        db = AsyncMock()
        db.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("connection lost"))

        with pytest.raises(ServerError) as exc_info:
            async with db_error_handler(db, "Post"):
                raise OperationalError("SELECT", {}, Exception("connection lost"))

        assert exc_info.value.transient is True
