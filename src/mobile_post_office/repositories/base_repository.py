"""
Base repository class providing common database operations.

This class serves as a reusable foundation for repositories that interact with
the database using SQLAlchemy's async sessions. Model-specific repositories
inherit from it and add their own queries.

Repositories never commit: `flush()` sends the SQL inside the current
transaction and the caller (service or import pipeline) decides when the
transaction ends.
"""
import logging
import time
from typing import Any, Generic, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mobile_post_office.database.base import Base
from mobile_post_office.exceptions import DuplicateRecordError, RecordNotFoundError
from mobile_post_office.exceptions.mapper import db_error_handler
from mobile_post_office.validators.exception_validators import find_unique_conflicts

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: The SQLAlchemy model class (not an instance), used to build queries
            db: The async database session
        """
        self.model = model
        self.db = db

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Insert an entity. `kwargs` must already be validated attribute values.

        Logging:
        - DEBUG: start event with model name and provided keys (not values).
        - INFO: duplicate detected by the pre-check.
        - INFO: success event with created id and duration_ms.
        """
        logger.debug(
            "repo.create.start",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                "provided_keys": sorted(kwargs.keys()),
            },
        )

        # pre-check unique conflicts (best-effort); the IntegrityError mapping below is the real guard
        conflicts = await find_unique_conflicts(self.db, self.model, kwargs)
        if conflicts:
            logger.info(
                "repo.create.duplicate_precheck",
                extra={
                    "model": self.model.__name__,
                    "operation": "create",
                    "conflict_fields": sorted(conflicts),
                },
            )
            raise DuplicateRecordError(
                f"{self.model.__name__} already exists for field(s): {', '.join(sorted(conflicts))}",
                fields=sorted(conflicts),
            )

        start = time.perf_counter()

        async with db_error_handler(self.db, self.model.__name__):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            # load server-generated columns (id, timestamps) while still in async context
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                "id": entity.id,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get_by_id(self, entity_id: int) -> ModelType | None:
        async with db_error_handler(self.db, self.model.__name__):
            result = await self.db.execute(select(self.model).where(self.model.id == entity_id))
            entity = result.scalar_one_or_none()

        logger.debug("repo.get_by_id", extra={"model": self.model.__name__, "id": entity_id,
                                              "found": entity is not None})
        return entity

    async def get_by_id_or_raise(self, entity_id: int) -> ModelType:
        """
        Get an entity by its ID or raise RecordNotFoundError.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise RecordNotFoundError(entity_id)
        return entity

    async def count(self, **filters: Any) -> int:
        """
        Count entities with optional equality filters (e.g. mobile_code="A1").
        """
        query = select(func.count()).select_from(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field) and value is not None:
                query = query.where(getattr(self.model, field) == value)

        async with db_error_handler(self.db, self.model.__name__):
            result = await self.db.execute(query)
            return result.scalar() or 0

    # =================================================================================================================
    # Update / Delete
    # =================================================================================================================

    async def update(self, entity_id: int, **values) -> ModelType:
        """
        Apply `values` to an existing entity and return it with fresh server-side columns.

        Raises:
            RecordNotFoundError: no entity with this id
            DuplicateRecordError: the change would violate a unique constraint
        """
        entity = await self.get_by_id_or_raise(entity_id)

        async with db_error_handler(self.db, self.model.__name__):
            for key, value in values.items():
                setattr(entity, key, value)
            await self.db.flush()
            # onupdate timestamps are server-side; reload them instead of lazy-loading later
            await self.db.refresh(entity)

        logger.info(
            "repo.update.success",
            extra={"model": self.model.__name__, "id": entity_id, "updated_keys": sorted(values.keys())},
        )
        return entity

    async def delete(self, entity_id: int) -> bool:
        """
        Delete an entity by its ID.

        Returns:
            True if entity was deleted, False if not found
        """
        async with db_error_handler(self.db, self.model.__name__):
            result = await self.db.execute(delete(self.model).where(self.model.id == entity_id))

        deleted = result.rowcount > 0
        if deleted:
            logger.info("repo.delete.success", extra={"model": self.model.__name__, "id": entity_id})
        else:
            logger.info("repo.delete.not_found", extra={"model": self.model.__name__, "id": entity_id})
        return deleted
