"""Generic repository bound to one mapped model.

The repository is the only code that talks to the session. It offers the
operations the generic controller needs (find one, find many, create,
update, delete) and turns store failures into ``ConstraintError`` after
rolling the session back, so the request can still finish cleanly.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from loguru import logger
from sqlalchemy import ColumnElement, select
from sqlalchemy import delete as sql_delete
from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from crudkit.infrastructure.database.errors import translate_store_error

DEFAULT_PAGINATION_LIMIT = 100

T = TypeVar("T")


class ModelRepository(Generic[T]):
    """Repository providing CRUD operations for one mapped model.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.
        id_field: Name of the model's identifier attribute.

    Example:
        repo = ModelRepository(session, Widget)
        widget = await repo.get_by_id(1)
    """

    def __init__(
        self, session: AsyncSession, model_class: type[T], id_field: str = "id"
    ) -> None:
        self.session = session
        self.model_class = model_class
        self.id_field = id_field
        self.model_name = model_class.__name__

    @property
    def _id_column(self) -> Any:  # noqa: ANN401 - instrumented attribute of T
        return getattr(self.model_class, self.id_field)

    async def _execute(self, stmt: Executable, action: str) -> Result[Any]:
        """Run a statement, rolling back and translating store failures.

        Raises:
            ConstraintError: If the store rejects the statement.
        """
        try:
            return await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "{} of {} rejected by the store: {}", action, self.model_name, exc
            )
            raise translate_store_error(exc) from exc

    async def get_by_id(self, entity_id: object) -> T | None:
        """Retrieve a record by its identifier.

        Args:
            entity_id: The identifier of the record to retrieve.

        Returns:
            T | None: The record if found, None otherwise.
        """
        logger.debug("Fetching {} by ID: {}", self.model_name, entity_id)

        stmt = select(self.model_class).where(self._id_column == entity_id)
        result = await self._execute(stmt, "Lookup")
        instance = result.scalar_one_or_none()

        if instance is None:
            logger.debug("{} instance not found with ID: {}", self.model_name, entity_id)

        return instance

    async def find_many(
        self,
        *,
        where: ColumnElement[bool] | None = None,
        order_by: Sequence[tuple[str, str]] = (),
        skip: int = 0,
        limit: int = DEFAULT_PAGINATION_LIMIT,
    ) -> list[T]:
        """Retrieve records matching an optional predicate, sorted and paginated.

        Args:
            where: Boolean clause restricting the rows, or None for all rows.
            order_by: ``(field, "asc" | "desc")`` pairs applied in order.
            skip: Number of records to skip.
            limit: Maximum number of records to return.

        Returns:
            list[T]: The matching records. Ties are broken by identifier.
        """
        logger.debug(
            "Fetching {} collection - order_by: {}, skip: {}, limit: {}, filtered: {}",
            self.model_name,
            list(order_by),
            skip,
            limit,
            where is not None,
        )

        stmt = select(self.model_class)
        if where is not None:
            stmt = stmt.where(where)

        clauses = []
        for field, direction in order_by:
            column = getattr(self.model_class, field)
            clauses.append(column.asc() if direction == "asc" else column.desc())
        clauses.append(self._id_column.asc())

        stmt = stmt.order_by(*clauses).offset(skip).limit(limit)
        result = await self._execute(stmt, "Listing")
        instances = list(result.scalars().all())

        logger.debug("Retrieved {} {} instances", len(instances), self.model_name)

        return instances

    def _known_fields(self, data: Mapping[str, object]) -> dict[str, object]:
        known = {}
        for key, value in data.items():
            if hasattr(self.model_class, key):
                known[key] = value
            else:
                logger.warning(
                    "Ignoring non-existent field '{}' on {}", key, self.model_name
                )
        return known

    async def create(self, data: Mapping[str, object]) -> T:
        """Insert a new record.

        Args:
            data: Field values of the new record.

        Returns:
            T: The created record with server-generated values loaded.

        Raises:
            ConstraintError: If the store rejects the insert.
        """
        logger.debug("Creating new {} instance", self.model_name)

        instance = self.model_class(**self._known_fields(data))
        self.session.add(instance)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "Insert into {} rejected by the store: {}", self.model_name, exc
            )
            raise translate_store_error(exc) from exc

        # Load server-generated values (ID, timestamps)
        await self.session.refresh(instance)

        logger.info(
            "Created {} instance with ID: {}",
            self.model_name,
            getattr(instance, self.id_field),
        )

        return instance

    async def update(self, entity_id: object, data: Mapping[str, object]) -> T | None:
        """Update a record by its identifier.

        Args:
            entity_id: The identifier of the record to update.
            data: Field values to write.

        Returns:
            T | None: The updated record if found, None otherwise.

        Raises:
            ConstraintError: If the store rejects the update.
        """
        logger.debug(
            "Updating {} instance ID {} - fields: {}",
            self.model_name,
            entity_id,
            list(data.keys()),
        )

        instance = await self.get_by_id(entity_id)
        if instance is None:
            return None

        for key, value in self._known_fields(data).items():
            setattr(instance, key, value)

        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "Update of {} ID {} rejected by the store: {}",
                self.model_name,
                entity_id,
                exc,
            )
            raise translate_store_error(exc) from exc

        await self.session.refresh(instance)

        logger.info(
            "Updated {} instance ID {} - fields: {}",
            self.model_name,
            entity_id,
            list(data.keys()),
        )

        return instance

    async def delete(self, entity_id: object) -> bool:
        """Delete a record by its identifier.

        Args:
            entity_id: The identifier of the record to delete.

        Returns:
            bool: True if the record was deleted, False if not found.

        Raises:
            ConstraintError: If the store rejects the delete, for example
                because another record still references this one.
        """
        logger.debug("Deleting {} instance with ID: {}", self.model_name, entity_id)

        stmt = sql_delete(self.model_class).where(self._id_column == entity_id)
        result = await self._execute(stmt, "Delete")
        deleted = bool(getattr(result, "rowcount", 0))

        if deleted:
            logger.info("Deleted {} instance with ID: {}", self.model_name, entity_id)

        return deleted
