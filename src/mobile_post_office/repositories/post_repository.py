"""
Post repository: listing queries, savepoint inserts for batch import, and truncation.
"""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from mobile_post_office.exceptions.mapper import db_error_handler
from mobile_post_office.models import Post
from mobile_post_office.query.post_query import PostQuery, build_count_statement, build_page_statement
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PostRepository(BaseRepository[Post]):
    """
    Repository for Post entity operations.

    Inherits the generic CRUD operations and adds post-specific queries.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Post, db)

    # =================================================================================================================
    # Listing
    # =================================================================================================================

    async def count_matching(self, query: PostQuery) -> int:
        async with db_error_handler(self.db, "Post"):
            result = await self.db.execute(build_count_statement(query))
            return result.scalar_one()

    async def search(self, query: PostQuery) -> list[Post]:
        """Return one page of posts matching `query`, in the resolved sort order."""
        async with db_error_handler(self.db, "Post"):
            result = await self.db.execute(build_page_statement(query))
            posts = list(result.scalars().all())

        logger.debug(
            "post_repo.search",
            extra={"page": query.page, "limit": query.limit, "returned": len(posts)},
        )
        return posts

    # =================================================================================================================
    # Batch import
    # =================================================================================================================

    async def insert_in_savepoint(self, values: dict) -> Post:
        """
        Insert one post inside a SAVEPOINT of the current transaction.

        A rejected row only rolls back its own savepoint, so the surrounding
        batch transaction stays usable. Store errors are NOT mapped here: the
        import pipeline classifies them itself (duplicate / data error / fatal).
        """
        post = Post(**values)
        async with self.db.begin_nested():
            self.db.add(post)
            await self.db.flush()
        return post

    # =================================================================================================================
    # Maintenance
    # =================================================================================================================

    async def truncate(self) -> int:
        """Delete every post. Returns the number of rows removed."""
        async with db_error_handler(self.db, "Post"):
            result = await self.db.execute(delete(Post))

        logger.warning("post_repo.truncate", extra={"deleted": result.rowcount})
        return result.rowcount
