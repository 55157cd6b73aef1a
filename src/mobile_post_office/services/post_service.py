"""
Record service: the create / list / get / update / remove operations on posts.

The service owns the transaction boundary of each operation: repositories
flush, the service commits. Every failure surfaces as a taxonomy error.
"""

import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from mobile_post_office.exceptions import InvalidTimeFormatError, NoUpdatableFieldsError
from mobile_post_office.exceptions.mapper import db_error_handler
from mobile_post_office.models import Post
from mobile_post_office.models.language import LangSelector
from mobile_post_office.normalizers.post_normalizer import (
    TIME_PATTERN,
    NormalizeMode,
    normalize_post,
    require_name_and_district,
)
from mobile_post_office.projections.post_projector import project, project_many
from mobile_post_office.query.post_query import PageMeta, PostQuery
from mobile_post_office.repositories import PostRepository

logger = logging.getLogger(__name__)


class PostService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PostRepository(db)

    async def _commit(self) -> None:
        async with db_error_handler(self.db, "Post"):
            await self.db.commit()

    # =================================================================================================================
    # Commands
    # =================================================================================================================

    async def create(self, data: Mapping[str, Any]) -> Post:
        """
        Validate and store a new post.

        Raises:
            InvalidNumericValueError / InvalidTimeFormatError / InvalidParameterFormatError: bad field
            MissingRequiredFieldError: no name variant or no district variant
            DuplicateRecordError: (mobileCode, seq) already exists
            ServerError: any other store failure
        """
        values = normalize_post(data, NormalizeMode.STRICT)
        require_name_and_district(values)

        post = await self.repo.create(**values)
        await self._commit()

        logger.info("post_service.create.success", extra={"id": post.id})
        return post

    async def update(self, post_id: int, data: Mapping[str, Any]) -> Post:
        """Partially update a post; only the supplied fields change."""
        await self.repo.get_by_id_or_raise(post_id)

        if not data:
            raise NoUpdatableFieldsError("No updatable fields provided")

        values = normalize_post(data, NormalizeMode.STRICT)
        post = await self.repo.update(post_id, **values)
        await self._commit()

        logger.info("post_service.update.success", extra={"id": post_id, "updated_keys": sorted(values)})
        return post

    async def remove(self, post_id: int) -> None:
        await self.repo.get_by_id_or_raise(post_id)
        await self.repo.delete(post_id)
        await self._commit()
        logger.info("post_service.remove.success", extra={"id": post_id})

    async def truncate(self) -> int:
        """Delete every post (maintenance tool only). Returns the number of rows removed."""
        deleted = await self.repo.truncate()
        await self._commit()
        return deleted

    # =================================================================================================================
    # Queries
    # =================================================================================================================

    async def list_posts(self, query: PostQuery) -> tuple[list[dict[str, Any]], PageMeta]:
        if query.open_at and not TIME_PATTERN.fullmatch(query.open_at):
            raise InvalidTimeFormatError(
                "openAt must be in HH:MM format with valid time (00:00-23:59)", fields=["openAt"]
            )

        # count and page are two round trips; concurrent writes between them are tolerated
        total = await self.repo.count_matching(query)
        posts = await self.repo.search(query)

        meta = PageMeta(page=query.page, limit=query.limit, total=total, lang=query.lang)
        logger.debug("post_service.list", extra={"total": total, "returned": len(posts)})
        return project_many(posts, query.lang), meta

    async def get(self, post_id: int, lang: LangSelector = LangSelector.EN) -> dict[str, Any]:
        post = await self.repo.get_by_id_or_raise(post_id)
        return project(post, lang)

    async def count(self) -> int:
        return await self.repo.count()
