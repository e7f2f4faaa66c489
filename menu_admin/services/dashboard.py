"""
Dashboard statistics: product, category and optional counts plus the
store status, fetched concurrently.
"""

import asyncio
import logging
from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.schemas import DashboardStats
from menu_admin.services.backend import BackendError, BaseBackend
from menu_admin.services.store import StoreService, store_label

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.backend = backend
        self.store = StoreService(backend, self.settings)

    async def get_stats(self) -> DashboardStats:
        """
        Aggregate counts for the dashboard cards.

        A failing query only zeroes its own card (closed for the store status).
        """
        products, categories, optionals, store = await asyncio.gather(
            self.backend.count(self.settings.products_table),
            self.backend.count(self.settings.categories_table),
            self.backend.count(self.settings.optionals_table),
            self.store.get_status(),
            return_exceptions=True,
        )

        def value(result, default, name):
            if isinstance(result, BackendError):
                logger.error(f"Error loading dashboard {name}: {result.message}")
                return default
            if isinstance(result, BaseException):
                raise result
            return result

        store_open = value(store, None, "store status")
        store_open = store_open.is_open if store_open is not None else False

        return DashboardStats(
            total_products=value(products, 0, "product count"),
            total_categories=value(categories, 0, "category count"),
            total_optionals=value(optionals, 0, "optional count"),
            store_open=store_open,
            store_status_label=store_label(store_open),
        )
