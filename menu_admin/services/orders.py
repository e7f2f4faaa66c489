"""
Order listing with search, status filter and display labels.
"""

from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.formatting import format_datetime, format_price
from menu_admin.schemas import Order, OrderListItem, OrderListResponse, OrderStatusEnum
from menu_admin.services.backend import BaseBackend, Row
from menu_admin.services.crud import EntityService, parse_rows

ALL_STATUSES = "all"

# status -> (label, badge variant)
STATUS_BADGES = {
    OrderStatusEnum.PENDING.value: ("Pending", "secondary"),
    OrderStatusEnum.CONFIRMED.value: ("Confirmed", "default"),
    OrderStatusEnum.PREPARING.value: ("Preparing", "outline"),
    OrderStatusEnum.READY.value: ("Ready", "outline"),
    OrderStatusEnum.DELIVERED.value: ("Delivered", "default"),
    OrderStatusEnum.CANCELLED.value: ("Cancelled", "destructive"),
}


def status_badge(status: str) -> tuple[str, str]:
    """Unknown statuses are shown as-is."""
    return STATUS_BADGES.get(status, (status, "secondary"))


def matches(order: Order, search: Optional[str], status: Optional[str]) -> bool:
    if status and status != ALL_STATUSES and order.status != status:
        return False
    if not search:
        return True
    term = search.lower()
    return term in order.id.lower() or term in (order.channel or "").lower()


def present_order(order: Order) -> OrderListItem:
    label, variant = status_badge(order.status)
    return OrderListItem(
        **order.model_dump(),
        status_label=label,
        status_variant=variant,
        total_display=format_price(order.total_value),
        net_display=format_price(order.net_value),
        created_display=format_datetime(order.created_at),
    )


class OrderService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.orders = EntityService(
            backend, settings.orders_table, "order",
            order_by="created_at", descending=True,
        )

    async def list_rows(self) -> list[Row]:
        return await self.orders.list()

    async def list_orders(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> OrderListResponse:
        rows = await self.list_rows()
        orders = parse_rows(Order, rows, "order")
        return OrderListResponse(
            total=len(rows),
            orders=[present_order(o) for o in orders if matches(o, search, status)],
        )

    async def get_order(self, order_id: str) -> OrderListItem:
        return present_order(Order.model_validate(await self.orders.get(order_id)))
