"""
Delivery settings: a single-row table holding the fee, maximum distance
and estimated delivery time.
"""

import logging
from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.formatting import NOT_SET, format_optional, format_price
from menu_admin.schemas import DeliverySettings, DeliverySettingsUpdate
from menu_admin.services.backend import BaseBackend, Row
from menu_admin.services.crud import EntityService

logger = logging.getLogger(__name__)


def present_settings(row: Optional[Row]) -> DeliverySettings:
    """Settings with display strings; an empty table yields blank defaults."""
    if row is None:
        return DeliverySettings()
    settings = DeliverySettings.model_validate(row)
    settings.price_display = format_price(settings.price) if settings.price is not None else NOT_SET
    settings.max_distance_display = format_optional(settings.max_km, "km")
    settings.time_display = format_optional(settings.time_min, "minutes")
    return settings


class DeliveryService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rows = EntityService(backend, settings.delivery_table, "delivery settings")

    async def get_settings(self) -> DeliverySettings:
        """The first row of the table. No row is not an error."""
        row = await self.rows.first()
        if row is None:
            logger.debug("No delivery settings stored yet")
        return present_settings(row)

    async def save_settings(self, data: DeliverySettingsUpdate) -> DeliverySettings:
        """Update the existing row or create it, then reload."""
        current = await self.rows.first()
        await self.rows.save(current["id"] if current else None, data.to_row())
        return await self.get_settings()
