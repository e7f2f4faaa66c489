"""
SQL Backend Implementation

Talks to the backend's Postgres database directly through SQLAlchemy,
bypassing the REST layer. Used when BACKEND_PROVIDER=sql.

Authentication falls back to the single admin account from settings.
"""

import logging
from datetime import date, datetime, time
from typing import Any, Optional

from sqlalchemy import Table, delete, func, insert, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from menu_admin.core.config import get_settings
from menu_admin.database import Base, build_engine, build_sessionmaker, init_db
from menu_admin.services.backend.base import (
    AuthSession,
    AuthUser,
    BackendError,
    BaseBackend,
    RecordNotFoundError,
    Row,
    new_row_id,
)
from menu_admin.services.backend.mock import StaticAdminAuth

logger = logging.getLogger(__name__)


def _to_row(mapping) -> Row:
    """Convert a result mapping to a JSON-friendly dict, as the REST API returns."""
    row = {}
    for key, value in mapping.items():
        if isinstance(value, (datetime, date, time)):
            value = value.isoformat()
        row[key] = value
    return row


class SqlBackend(BaseBackend):
    """
    SQLAlchemy backend implementation.

    Example:
        >>> backend = SqlBackend("sqlite+aiosqlite:///menu.db")
        >>> await backend.create_tables()
        >>> await backend.insert("categorias", {"name": "Drinks"})
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        settings = get_settings()
        self._engine = engine or build_engine(database_url or settings.database_url)
        self._sessionmaker = build_sessionmaker(self._engine)
        self._auth = StaticAdminAuth(settings.admin_email, settings.admin_password)

        # Registers the models on Base.metadata
        import menu_admin.models  # noqa: F401

        logger.info(f"SqlBackend initialized ({self._engine.url.drivername})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sql"

    async def create_tables(self) -> None:
        await init_db(self._engine)

    # ==========================================================================
    # INTERNALS
    # ==========================================================================

    @staticmethod
    def _table(name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise BackendError(f'relation "{name}" does not exist', code="42P01", status_code=404)
        return table

    @staticmethod
    def _column(table: Table, name: str):
        if name not in table.c:
            raise BackendError(
                f"column {table.name}.{name} does not exist", code="42703", status_code=400
            )
        return table.c[name]

    @classmethod
    def _where(cls, table: Table, filters: Optional[dict[str, Any]]) -> list:
        clauses = []
        for column, value in (filters or {}).items():
            col = cls._column(table, column)
            clauses.append(col.is_(None) if value is None else col == value)
        return clauses

    @staticmethod
    def _known_values(table: Table, values: Row) -> Row:
        unknown = [k for k in values if k not in table.c]
        if unknown:
            raise BackendError(
                f"Could not find the '{unknown[0]}' column of '{table.name}'",
                code="PGRST204",
                status_code=400,
            )
        return dict(values)

    async def _fetch_by_id(self, session, table: Table, row_id: str) -> Optional[Row]:
        result = await session.execute(select(table).where(table.c.id == row_id))
        mapping = result.mappings().first()
        return _to_row(mapping) if mapping is not None else None

    # ==========================================================================
    # TABLE ACCESS
    # ==========================================================================

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        tbl = self._table(table)

        if columns.strip() == "*":
            stmt = select(tbl)
        else:
            names = [c.strip() for c in columns.split(",") if c.strip()]
            stmt = select(*[self._column(tbl, n) for n in names])

        stmt = stmt.where(*self._where(tbl, filters))
        if order_by:
            col = self._column(tbl, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                return [_to_row(m) for m in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error(f"SQL: select on {table} failed - {e}")
            raise BackendError(str(e.__cause__ or e), code="sql_error")

    async def count(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> int:
        tbl = self._table(table)
        stmt = select(func.count()).select_from(tbl).where(*self._where(tbl, filters))
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"SQL: count on {table} failed - {e}")
            raise BackendError(str(e.__cause__ or e), code="sql_error")

    async def insert(self, table: str, row: Row) -> Row:
        tbl = self._table(table)
        values = self._known_values(tbl, row)
        values.setdefault("id", new_row_id())

        try:
            async with self._sessionmaker() as session:
                await session.execute(insert(tbl).values(**values))
                await session.commit()
                stored = await self._fetch_by_id(session, tbl, values["id"])
        except IntegrityError as e:
            logger.warning(f"SQL: insert into {table} violated a constraint - {e.orig}")
            raise BackendError(str(e.orig), code="23505", status_code=409)
        except SQLAlchemyError as e:
            logger.error(f"SQL: insert into {table} failed - {e}")
            raise BackendError(str(e.__cause__ or e), code="sql_error")

        logger.debug(f"SQL: Inserted {table}#{values['id']}")
        return stored or values

    async def update(self, table: str, row_id: str, values: Row) -> Row:
        tbl = self._table(table)
        changes = self._known_values(tbl, {k: v for k, v in values.items() if k != "id"})

        try:
            async with self._sessionmaker() as session:
                if changes:
                    result = await session.execute(
                        update(tbl).where(tbl.c.id == row_id).values(**changes)
                    )
                    await session.commit()
                    if result.rowcount == 0:
                        raise RecordNotFoundError(f"{table}#{row_id} not found")
                stored = await self._fetch_by_id(session, tbl, row_id)
        except SQLAlchemyError as e:
            logger.error(f"SQL: update of {table}#{row_id} failed - {e}")
            raise BackendError(str(e.__cause__ or e), code="sql_error")

        if stored is None:
            raise RecordNotFoundError(f"{table}#{row_id} not found")
        logger.debug(f"SQL: Updated {table}#{row_id}")
        return stored

    async def delete(self, table: str, row_id: str) -> None:
        tbl = self._table(table)
        try:
            async with self._sessionmaker() as session:
                await session.execute(delete(tbl).where(tbl.c.id == row_id))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"SQL: delete of {table}#{row_id} failed - {e}")
            raise BackendError(str(e.__cause__ or e), code="sql_error")
        logger.debug(f"SQL: Deleted {table}#{row_id}")

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    async def sign_in(self, email: str, password: str) -> AuthSession:
        return self._auth.sign_in(email, password)

    async def get_user(self, access_token: str) -> AuthUser:
        return self._auth.get_user(access_token)

    async def sign_out(self, access_token: str) -> None:
        self._auth.sign_out(access_token)

    # ==========================================================================
    # LIFECYCLE
    # ==========================================================================

    async def health_check(self) -> bool:
        try:
            async with self._sessionmaker() as session:
                await session.execute(text("SELECT 1"))
            logger.debug("SQL: Health check passed")
            return True
        except SQLAlchemyError as e:
            logger.error(f"SQL: Health check failed - {e}")
            return False

    async def aclose(self) -> None:
        await self._engine.dispose()
