"""
mpo-import: load a mobile post office feed into the database in one transaction.

Exit codes: 0 committed, 1 usage error or fatal failure (nothing was written).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mobile_post_office.config.settings import get_settings
from mobile_post_office.core.logging import setup_logging, stop_queue_logging
from mobile_post_office.db.session import create_all_tables, get_engine, get_sessionmaker
from mobile_post_office.exceptions import ServerError
from mobile_post_office.importer import MissingSourceError, PostImporter, SourceLoadError
from mobile_post_office.importer.report import format_summary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="mpo-import",
        description="Import mobile post office records from a URL or a JSON file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://example.com/mobile-posts.json
  %(prog)s ./sample-data.json --chunk-size 100
  %(prog)s ./sample-data.json --report reports/import.json
        """,
    )
    parser.add_argument("source", nargs="?", help="http(s) URL or path to a JSON file")
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.IMPORT_CHUNK_SIZE,
        help="records written per chunk (default: %(default)s)",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=settings.IMPORT_REPORT_PATH,
        help="where to write the JSON import report (default: %(default)s)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="create missing tables before importing",
    )
    return parser


def _usage_error() -> int:
    print("Error: No data source provided.", file=sys.stderr)
    print("Usage: mpo-import <url-or-file-path>", file=sys.stderr)
    return 1


async def run_import(
    source: str | None,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    chunk_size: int,
    report_path: Path | None,
    http_timeout: float = 30.0,
) -> int:
    """Run one import and print its summary. Returns the process exit code."""
    try:
        importer = PostImporter(
            session_factory,
            chunk_size=chunk_size,
            report_path=report_path,
            http_timeout=http_timeout,
        )
        report = await importer.run(source)
    except MissingSourceError:
        return _usage_error()
    except SourceLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ServerError as exc:
        print(f"Fatal error during import, nothing was imported: {exc.message}", file=sys.stderr)
        return 1

    print(format_summary(report))
    if report.saved_to is not None:
        print(f"Import report saved to: {report.saved_to}")
    elif report_path is not None:
        print(f"Warning: could not write import report to {report_path}", file=sys.stderr)
    return 0


async def _main(args: argparse.Namespace) -> int:
    if not args.source:
        # before any engine or transaction exists
        return _usage_error()

    settings = get_settings()
    engine = get_engine()
    try:
        if args.create_tables:
            await create_all_tables(engine)
        return await run_import(
            args.source,
            session_factory=get_sessionmaker(),
            chunk_size=args.chunk_size,
            report_path=args.report,
            http_timeout=settings.IMPORT_HTTP_TIMEOUT_SECONDS,
        )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.chunk_size <= 0:
        parser.error("--chunk-size must be > 0")

    setup_logging(get_settings())
    try:
        return asyncio.run(_main(args))
    finally:
        stop_queue_logging()


if __name__ == "__main__":
    sys.exit(main())
