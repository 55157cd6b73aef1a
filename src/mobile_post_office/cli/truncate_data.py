"""
mpo-truncate: delete every mobile post record, after two confirmations.
"""

import argparse
import asyncio
import sys
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mobile_post_office.config.settings import get_settings
from mobile_post_office.core.logging import setup_logging, stop_queue_logging
from mobile_post_office.db.session import get_engine, get_sessionmaker
from mobile_post_office.exceptions import ServerError
from mobile_post_office.services.post_service import PostService


def is_yes(answer: str) -> bool:
    return answer.strip().lower() in ("yes", "y")


async def run_truncate(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    assume_yes: bool = False,
    ask: Callable[[str], str] = input,
) -> int:
    """Count, confirm twice, delete, and print a before/after summary. Returns the exit code."""
    async with session_factory() as session:
        service = PostService(session)
        before = await service.count()

        if before == 0:
            print("Database is already empty. No records to delete.")
            return 0

        print(f"WARNING: This will delete ALL {before} records from the database!")
        print("This action CANNOT be undone!")

        if not assume_yes:
            if not is_yes(ask("Are you sure you want to proceed? (yes/no): ")):
                print("Truncation cancelled by user.")
                return 0
            if not is_yes(ask('Final confirmation - Type "yes" to DELETE ALL RECORDS: ')):
                print("Truncation cancelled by user.")
                return 0

        await service.truncate()
        after = await service.count()

    print("==========================================")
    print("Truncation Summary")
    print("==========================================")
    print(f"Records before: {before}")
    print(f"Records after: {after}")
    print(f"Records deleted: {before - after}")
    print("==========================================")

    if after:
        print("Warning: Some records may still remain in the database.")
        return 1
    print("Database truncation completed successfully!")
    return 0


async def _main(args: argparse.Namespace) -> int:
    engine = get_engine()
    try:
        return await run_truncate(get_sessionmaker(), assume_yes=args.yes)
    except ServerError as exc:
        print(f"Fatal error during truncation: {exc.message}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mpo-truncate",
        description="Delete ALL mobile post records from the database",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="skip both confirmation prompts")
    args = parser.parse_args(argv)

    setup_logging(get_settings())
    try:
        return asyncio.run(_main(args))
    finally:
        stop_queue_logging()


if __name__ == "__main__":
    sys.exit(main())
