"""
Batch import pipeline.

    IDLE -> LOADING -> NORMALIZING -> TRANSACTION_OPEN -> COMMITTED
                                                       -> ROLLED_BACK

* Every record is normalized (LENIENT) before the store is touched.
* The whole batch is written in ONE transaction, in chunks of `chunk_size`.
  Each record gets its own SAVEPOINT: a duplicate or a bad row only undoes
  itself and is counted, the batch carries on.
* Any other failure (lost connection, unexpected exception, failed commit)
  rolls the entire batch back and is re-raised as ServerError. No report is
  written for a rolled-back run.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

import httpx
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mobile_post_office.exceptions import MissingRequiredFieldError, ServerError
from mobile_post_office.exceptions.integrity_classifier import is_unique_violation
from mobile_post_office.exceptions.mapper import map_store_error
from mobile_post_office.normalizers.post_normalizer import NormalizeMode, normalize_post, require_name_and_district
from mobile_post_office.repositories import PostRepository
from .loader import load_records
from .report import ImportReport, ImportStats, log_summary, write_report

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50

# (1-based record index, normalized values)
PreparedRecord = tuple[int, dict[str, Any]]


class ImportState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    NORMALIZING = "normalizing"
    TRANSACTION_OPEN = "transaction_open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def chunked(items: list, size: int) -> Iterator[list]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _describe(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc)
    return text.splitlines()[0] if text else type(exc).__name__


class PostImporter:
    """
    One-shot importer. Create a new instance per run; `state` tells how far the run got.

    Usage:
        importer = PostImporter(get_sessionmaker(), report_path=Path("import-report.json"))
        report = await importer.run("https://example.com/mobile-posts.json")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        report_path: Path | None = None,
        http_timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.session_factory = session_factory
        self.chunk_size = chunk_size
        self.report_path = report_path
        self.http_timeout = http_timeout
        self.http_client = http_client
        self.state = ImportState.IDLE

    def _set_state(self, state: ImportState) -> None:
        logger.debug("importer.state", extra={"from_state": self.state.value, "to_state": state.value})
        self.state = state

    # =================================================================================================================
    # Phases
    # =================================================================================================================

    async def run(self, source: str) -> ImportReport:
        """
        Load, normalize and store every record of `source`.

        Raises:
            SourceLoadError: the source could not be loaded (nothing was written)
            ServerError: terminal store failure; the whole batch was rolled back
        """
        self._set_state(ImportState.LOADING)
        records = await load_records(source, timeout=self.http_timeout, client=self.http_client)

        self._set_state(ImportState.NORMALIZING)
        stats = ImportStats()
        prepared = self.normalize_records(records, stats)

        await self._write_batch(prepared, stats, total=len(records))

        report = ImportReport(data_source=source, total_records=len(records), stats=stats)
        log_summary(report)
        if self.report_path is not None and write_report(report, self.report_path):
            report.saved_to = self.report_path
        return report

    def normalize_records(self, records: list[Any], stats: ImportStats) -> list[PreparedRecord]:
        """LENIENT pass over the raw records. Never fails the batch."""
        prepared: list[PreparedRecord] = []

        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                stats.add_error(index, f"Record is not an object: {type(record).__name__}")
                continue

            values = normalize_post(
                record, NormalizeMode.LENIENT, index=index, irregularities=stats.irregularities
            )
            try:
                require_name_and_district(values)
            except MissingRequiredFieldError as exc:
                stats.add_error(index, exc.message)
                continue

            prepared.append((index, values))

        logger.info(
            "importer.normalize.done",
            extra={
                "records": len(records),
                "prepared": len(prepared),
                "irregularities": len(stats.irregularities),
                "rejected": stats.error_count,
            },
        )
        return prepared

    async def _write_batch(self, prepared: list[PreparedRecord], stats: ImportStats, *, total: int) -> None:
        async with self.session_factory() as session:
            repo = PostRepository(session)
            self._set_state(ImportState.TRANSACTION_OPEN)
            processed = 0

            try:
                for chunk_number, chunk in enumerate(chunked(prepared, self.chunk_size), start=1):
                    await self._apply_chunk(repo, chunk, stats)
                    processed += len(chunk)
                    logger.info(
                        "importer.chunk.done",
                        extra={"chunk": chunk_number, "processed": processed, "total": len(prepared)},
                    )
                await session.commit()
            except Exception as exc:
                await self._rollback(session)
                self._set_state(ImportState.ROLLED_BACK)
                raise self._fatal(exc, processed=processed) from exc

        self._set_state(ImportState.COMMITTED)
        logger.info("importer.commit", extra={"total_records": total, "success_count": stats.success_count})

    async def _apply_chunk(self, repo: PostRepository, chunk: list[PreparedRecord], stats: ImportStats) -> None:
        for index, values in chunk:
            try:
                await repo.insert_in_savepoint(values)
            except IntegrityError as exc:
                if is_unique_violation(exc):
                    stats.duplicate_count += 1
                else:
                    stats.add_error(index, _describe(exc))
            except DataError as exc:
                stats.add_error(index, _describe(exc))
            else:
                stats.success_count += 1

    # =================================================================================================================
    # Failure handling
    # =================================================================================================================

    async def _rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        except Exception:
            logger.exception("importer.rollback_failed")

    def _fatal(self, exc: Exception, *, processed: int) -> ServerError:
        mapped = map_store_error(exc, "Post")
        if isinstance(mapped, ServerError) and mapped.transient:
            logger.error(
                "importer.rolled_back.store_unavailable",
                extra={"processed": processed, "error_type": type(exc).__name__},
            )
            return mapped

        logger.exception("importer.rolled_back", extra={"processed": processed})
        return ServerError("Import failed; all changes were rolled back")
