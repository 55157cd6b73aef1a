from .loader import MissingSourceError, SourceLoadError, extract_records, load_records
from .pipeline import ImportState, PostImporter
from .report import ImportReport, ImportStats, RecordError, write_report

__all__ = [
    "MissingSourceError",
    "SourceLoadError",
    "extract_records",
    "load_records",
    "ImportState",
    "PostImporter",
    "ImportReport",
    "ImportStats",
    "RecordError",
    "write_report",
]
