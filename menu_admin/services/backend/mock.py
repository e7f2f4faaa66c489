"""
In-Memory Backend Implementation

Simulates the hosted backend without any network calls.
Used in development mode (ENV_MODE=development) and in tests.

Behavior:
    - Tables are plain dicts keyed by row id, created on first use
    - Sorting follows Postgres: NULLs last ascending, first descending
    - One admin account taken from settings, tokens kept in memory
    - Optional simulated latency and failure rate for exercising error paths
    - Optional demo seed (orders and store row)
"""

import asyncio
import copy
import random
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from menu_admin.core.config import get_settings
from menu_admin.services.backend.base import (
    AuthenticationError,
    AuthSession,
    AuthUser,
    BackendError,
    BaseBackend,
    RecordNotFoundError,
    Row,
    new_row_id,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def demo_orders() -> list[Row]:
    """Orders shown on a fresh development install."""
    now = _now()
    return [
        {
            "id": "1",
            "created_at": now.isoformat(),
            "status": "pending",
            "total_value": 45.90,
            "net_value": 41.31,
            "channel": "Digital Menu",
        },
        {
            "id": "2",
            "created_at": (now - timedelta(hours=1)).isoformat(),
            "status": "confirmed",
            "total_value": 32.50,
            "net_value": 29.25,
            "channel": "Digital Menu",
        },
        {
            "id": "3",
            "created_at": (now - timedelta(hours=2)).isoformat(),
            "status": "delivered",
            "total_value": 78.90,
            "net_value": 71.01,
            "channel": "WhatsApp",
        },
        {
            "id": "4",
            "created_at": (now - timedelta(hours=3)).isoformat(),
            "status": "cancelled",
            "total_value": 25.40,
            "net_value": 22.86,
            "channel": "Digital Menu",
        },
    ]


class StaticAdminAuth:
    """
    Single-account authentication for backends without an auth service.

    The account comes from ADMIN_EMAIL / ADMIN_PASSWORD; issued tokens live
    in memory and are lost on restart.
    """

    def __init__(self, email: str, password: str):
        self._email = email
        self._password = password
        self._admin = AuthUser(id=new_row_id(), email=email)
        self._tokens: dict[str, AuthUser] = {}

    def sign_in(self, email: str, password: str) -> AuthSession:
        if email.strip().lower() != self._email.lower() or password != self._password:
            logger.info(f"Rejected sign-in for {email}")
            raise AuthenticationError("Invalid login credentials", code="invalid_grant")

        token = secrets.token_urlsafe(32)
        self._tokens[token] = self._admin
        logger.info(f"Signed in {email}")
        return AuthSession(access_token=token, user=self._admin)

    def get_user(self, access_token: str) -> AuthUser:
        user = self._tokens.get(access_token)
        if user is None:
            raise AuthenticationError("Invalid or expired token", code="bad_jwt")
        return user

    def sign_out(self, access_token: str) -> None:
        self._tokens.pop(access_token, None)

    def clear(self) -> None:
        self._tokens.clear()


class InMemoryBackend(BaseBackend):
    """
    In-memory implementation of the backend service.

    Attributes:
        failure_rate: Probability of a simulated backend failure (0.0-1.0)
        latency: Seconds to sleep before each call

    Example:
        >>> backend = InMemoryBackend()
        >>> row = await backend.insert("categorias", {"name": "Drinks"})
        >>> await backend.count("categorias")
        1
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        latency: float = 0.0,
        seed: bool = False,
    ):
        self.failure_rate = failure_rate
        self.latency = latency
        self._tables: dict[str, dict[str, Row]] = {}

        settings = get_settings()
        self._auth = StaticAdminAuth(settings.admin_email, settings.admin_password)

        if seed:
            self.seed(settings)

        logger.info(
            f"InMemoryBackend initialized "
            f"(failure_rate={failure_rate:.0%}, seeded={seed})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "memory"

    def seed(self, settings=None) -> None:
        """Load demo rows into empty tables."""
        settings = settings or get_settings()
        orders = self._table(settings.orders_table)
        if not orders:
            for order in demo_orders():
                orders[order["id"]] = order
        store = self._table(settings.store_table)
        if not store:
            row_id = new_row_id()
            store[row_id] = {"id": row_id, "status": True}

    def reset(self) -> None:
        """Drop every table and token."""
        self._tables.clear()
        self._auth.clear()

    # ==========================================================================
    # INTERNALS
    # ==========================================================================

    def _table(self, name: str) -> dict[str, Row]:
        return self._tables.setdefault(name, {})

    async def _before_call(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.failure_rate and random.random() < self.failure_rate:
            logger.debug("Memory: Simulated backend failure")
            raise BackendError("Simulated backend failure", code="simulated", status_code=503)

    @staticmethod
    def _matches(row: Row, filters: Optional[dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(row.get(column) == value for column, value in filters.items())

    @staticmethod
    def _project(row: Row, columns: str) -> Row:
        if columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in columns.split(",") if c.strip()]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

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
        await self._before_call()

        rows = [r for r in self._table(table).values() if self._matches(r, filters)]

        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = missing + present if descending else present + missing

        if limit is not None:
            rows = rows[:limit]

        return [self._project(r, columns) for r in rows]

    async def count(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> int:
        await self._before_call()
        return sum(1 for r in self._table(table).values() if self._matches(r, filters))

    async def insert(self, table: str, row: Row) -> Row:
        await self._before_call()

        stored = copy.deepcopy(row)
        stored.setdefault("id", new_row_id())
        stored.setdefault("created_at", _now().isoformat())

        rows = self._table(table)
        if stored["id"] in rows:
            raise BackendError(
                f'duplicate key value violates unique constraint "{table}_pkey"',
                code="23505",
                status_code=409,
            )
        rows[stored["id"]] = stored
        logger.debug(f"Memory: Inserted {table}#{stored['id']}")
        return copy.deepcopy(stored)

    async def update(self, table: str, row_id: str, values: Row) -> Row:
        await self._before_call()

        rows = self._table(table)
        if row_id not in rows:
            raise RecordNotFoundError(f"{table}#{row_id} not found")
        changes = {k: copy.deepcopy(v) for k, v in values.items() if k != "id"}
        rows[row_id].update(changes)
        logger.debug(f"Memory: Updated {table}#{row_id}")
        return copy.deepcopy(rows[row_id])

    async def delete(self, table: str, row_id: str) -> None:
        await self._before_call()
        self._table(table).pop(row_id, None)
        logger.debug(f"Memory: Deleted {table}#{row_id}")

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    async def sign_in(self, email: str, password: str) -> AuthSession:
        await self._before_call()
        return self._auth.sign_in(email, password)

    async def get_user(self, access_token: str) -> AuthUser:
        return self._auth.get_user(access_token)

    async def sign_out(self, access_token: str) -> None:
        self._auth.sign_out(access_token)

    async def health_check(self) -> bool:
        """In-memory health check always returns True."""
        logger.debug("Memory: Backend health check passed")
        return True
