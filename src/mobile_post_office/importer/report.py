"""
Import statistics, the human-readable summary and the JSON report artifact.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from mobile_post_office.normalizers.post_normalizer import Irregularity

logger = logging.getLogger(__name__)

SUMMARY_IRREGULARITY_LIMIT = 20
SUMMARY_ERROR_LIMIT = 10


@dataclass(frozen=True)
class RecordError:
    record: int
    error: str

    def to_dict(self) -> dict:
        return {"record": self.record, "error": self.error}


@dataclass
class ImportStats:
    success_count: int = 0
    duplicate_count: int = 0
    error_count: int = 0
    irregularities: list[Irregularity] = field(default_factory=list)
    errors: list[RecordError] = field(default_factory=list)

    def add_error(self, record: int, error: str) -> None:
        self.error_count += 1
        self.errors.append(RecordError(record=record, error=error))


@dataclass
class ImportReport:
    data_source: str
    total_records: int
    stats: ImportStats
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # set once the report file has been written
    saved_to: Path | None = None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "dataSource": self.data_source,
            "totalRecords": self.total_records,
            "successCount": self.stats.success_count,
            "duplicateCount": self.stats.duplicate_count,
            "errorCount": self.stats.error_count,
            "irregularities": [item.to_dict() for item in self.stats.irregularities],
            "errors": [item.to_dict() for item in self.stats.errors],
        }


def format_summary(report: ImportReport) -> str:
    stats = report.stats
    lines = [
        "=====================================",
        "Import Summary",
        "=====================================",
        f"Total records: {report.total_records}",
        f"Successfully imported: {stats.success_count}",
        f"Duplicates skipped: {stats.duplicate_count}",
        f"Errors: {stats.error_count}",
        f"Irregularities found: {len(stats.irregularities)}",
        "=====================================",
    ]

    if stats.irregularities:
        lines.append("Irregularities:")
        lines.extend(f"  Record {item.record}: {item.issue}"
                     for item in stats.irregularities[:SUMMARY_IRREGULARITY_LIMIT])
        if len(stats.irregularities) > SUMMARY_IRREGULARITY_LIMIT:
            lines.append(f"  ... and {len(stats.irregularities) - SUMMARY_IRREGULARITY_LIMIT} more")

    if stats.errors:
        lines.append("Errors:")
        lines.extend(f"  Record {item.record}: {item.error}" for item in stats.errors[:SUMMARY_ERROR_LIMIT])
        if len(stats.errors) > SUMMARY_ERROR_LIMIT:
            lines.append(f"  ... and {len(stats.errors) - SUMMARY_ERROR_LIMIT} more")

    return "\n".join(lines)


def log_summary(report: ImportReport) -> None:
    logger.info(
        "importer.summary",
        extra={
            "data_source": report.data_source,
            "total_records": report.total_records,
            "success_count": report.stats.success_count,
            "duplicate_count": report.stats.duplicate_count,
            "error_count": report.stats.error_count,
            "irregularity_count": len(report.stats.irregularities),
        },
    )
    logger.info("%s", format_summary(report))


def write_report(report: ImportReport, path: Path) -> bool:
    """
    Write the report as pretty-printed JSON. Returns False (and logs) on failure:
    the imported data is already committed at this point.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError:
        logger.exception("importer.report.write_failed", extra={"path": str(path)})
        return False

    logger.info("importer.report.saved", extra={"path": str(path)})
    return True
