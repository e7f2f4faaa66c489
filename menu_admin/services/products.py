"""
Product management: listing with search and category names, the product
form (create/update), deletion and inline stock edits.
"""

import asyncio
import logging
from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.formatting import format_price
from menu_admin.schemas import Product, ProductCreate, ProductListItem, ProductListResponse
from menu_admin.services.backend import BackendError, BaseBackend
from menu_admin.services.crud import EntityService, parse_rows

logger = logging.getLogger(__name__)

NO_CATEGORY_LABEL = "No category"
UNKNOWN_CATEGORY_LABEL = "Category not found"


def category_label(category_id: Optional[str], names: dict[str, str]) -> str:
    if not category_id:
        return NO_CATEGORY_LABEL
    return names.get(category_id) or UNKNOWN_CATEGORY_LABEL


def effective_price(price: float, discount_price: Optional[float]) -> float:
    """The discount applies only when set, non-zero and different from the price."""
    if not discount_price or discount_price == price:
        return price
    return discount_price


def matches_search(product: Product, search: Optional[str]) -> bool:
    """Case-insensitive match on name or description."""
    if not search:
        return True
    term = search.lower()
    if term in product.name.lower():
        return True
    return bool(product.description) and term in product.description.lower()


def present_product(product: Product, category_names: dict[str, str]) -> ProductListItem:
    # A missing price is shown as zero
    price = product.price or 0.0
    current = effective_price(price, product.discount_price)
    return ProductListItem(
        **product.model_dump(),
        category_name=category_label(product.category_id, category_names),
        effective_price=current,
        on_sale=current != price,
        price_display=format_price(price),
        effective_price_display=format_price(current),
    )


class ProductService:
    """Backs the Products screen and the product form."""

    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.products = EntityService(
            backend, settings.products_table, "product",
            order_by="created_at", descending=True,
        )
        self.categories = EntityService(backend, settings.categories_table, "category")

    async def _category_names(self) -> dict[str, str]:
        # A failed category lookup degrades the labels, not the product list
        try:
            rows = await self.categories.list(columns="id, name")
        except BackendError:
            return {}
        return {row["id"]: row["name"] for row in rows}

    async def list_products(self, search: Optional[str] = None) -> ProductListResponse:
        """
        Products newest first, filtered by search.

        total counts every product, as the screen header does.
        """
        rows, names = await asyncio.gather(self.products.list(), self._category_names())
        products = parse_rows(Product, rows, "product")
        visible = [p for p in products if matches_search(p, search)]
        return ProductListResponse(
            total=len(rows),
            products=[present_product(p, names) for p in visible],
        )

    async def get_product(self, product_id: str) -> Product:
        return Product.model_validate(await self.products.get(product_id))

    async def create_product(self, data: ProductCreate) -> Product:
        return Product.model_validate(await self.products.create(data.to_row()))

    async def update_product(self, product_id: str, data: ProductCreate) -> Product:
        return Product.model_validate(await self.products.update(product_id, data.to_row()))

    async def delete_product(self, product_id: str) -> None:
        await self.products.delete(product_id)

    async def update_stock(self, product_id: str, stock: Optional[int]) -> Optional[Product]:
        """
        Inline stock edit.

        An empty value is ignored and returns None without touching the backend.
        """
        if stock is None:
            logger.debug(f"Empty stock value for product {product_id}, nothing to do")
            return None
        row = await self.products.update(product_id, {"estoque": stock})
        return Product.model_validate(row)
