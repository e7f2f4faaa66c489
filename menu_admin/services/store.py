"""
Store open/closed flag, kept in the first row of the store table.
"""

from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.schemas import StoreStatus
from menu_admin.services.backend import BaseBackend, Row
from menu_admin.services.crud import EntityService


def store_label(is_open: bool) -> str:
    return "Open" if is_open else "Closed"


def present_status(row: Optional[Row]) -> StoreStatus:
    """A missing row means the store is closed."""
    is_open = bool(row and row.get("status"))
    return StoreStatus(id=row.get("id") if row else None, is_open=is_open, label=store_label(is_open))


class StoreService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rows = EntityService(backend, settings.store_table, "store")

    async def get_status(self) -> StoreStatus:
        return present_status(await self.rows.first())

    async def set_status(self, is_open: bool) -> StoreStatus:
        current = await self.rows.first()
        row = await self.rows.save(current["id"] if current else None, {"status": is_open})
        return present_status(row)
