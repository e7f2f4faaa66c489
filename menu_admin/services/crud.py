"""
Entity CRUD Workflow

Every management screen follows the same cycle against one backend table:

    fetch rows -> edit -> validate -> upsert -> refresh list

EntityService implements the backend half of that cycle for a single
table. Validation happens in the Pydantic schemas before a payload gets
here; the outcome message is built by the route.
"""

import logging
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from menu_admin.services.backend import BackendError, BaseBackend, Row, new_row_id

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_rows(model: type[ModelT], rows: list[Row], entity: str) -> list[ModelT]:
    """
    Validate backend rows, skipping the ones that do not fit the model.

    Invalid rows are logged and left out.
    """
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {entity} row {row.get('id')}: {e.error_count()} errors"
            )
    return parsed


class EntityService:
    """
    CRUD on one backend table.

    Attributes:
        backend: Backend the rows live in
        table: Table name
        entity: Human readable name used in log lines
        order_by: Default sort column for list()
        descending: Default sort direction
    """

    def __init__(
        self,
        backend: BaseBackend,
        table: str,
        entity: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ):
        self.backend = backend
        self.table = table
        self.entity = entity
        self.order_by = order_by
        self.descending = descending

    async def list(
        self,
        *,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> list[Row]:
        try:
            return await self.backend.select(
                self.table,
                columns=columns,
                filters=filters,
                order_by=order_by or self.order_by,
                descending=self.descending if descending is None else descending,
                limit=limit,
            )
        except BackendError as e:
            logger.error(f"Error loading {self.entity} rows: {e.message}")
            raise

    async def get(self, row_id: str) -> Row:
        """Raises RecordNotFoundError for unknown ids."""
        return await self.backend.select_one(self.table, filters={"id": row_id})

    async def first(self) -> Optional[Row]:
        """First row of a single-row settings table, or None when empty."""
        rows = await self.list(limit=1)
        return rows[0] if rows else None

    async def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        return await self.backend.count(self.table, filters)

    async def create(self, values: Row) -> Row:
        row = {**values, "id": values.get("id") or new_row_id()}
        try:
            stored = await self.backend.insert(self.table, row)
        except BackendError as e:
            logger.error(f"Error creating {self.entity}: {e.message}")
            raise
        logger.info(f"Created {self.entity} {stored.get('id')}")
        return stored

    async def update(self, row_id: str, values: Row) -> Row:
        try:
            stored = await self.backend.update(self.table, row_id, values)
        except BackendError as e:
            logger.error(f"Error updating {self.entity} {row_id}: {e.message}")
            raise
        logger.info(f"Updated {self.entity} {row_id}")
        return stored

    async def save(self, row_id: Optional[str], values: Row) -> Row:
        """Update when the row already has an id, insert otherwise."""
        if row_id:
            return await self.update(row_id, values)
        return await self.create(values)

    async def delete(self, row_id: str) -> None:
        try:
            await self.backend.delete(self.table, row_id)
        except BackendError as e:
            logger.error(f"Error deleting {self.entity} {row_id}: {e.message}")
            raise
        logger.info(f"Deleted {self.entity} {row_id}")
