"""
Category management and the category picker used by the product form.
"""

from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.schemas import Category, CategoryCreate, CategoryOption
from menu_admin.services.backend import BaseBackend
from menu_admin.services.crud import EntityService, parse_rows


def display_order(category: Category) -> tuple:
    """Explicit order first, unordered categories last, ties by name."""
    return (category.order is None, category.order or 0, category.name.lower())


class CategoryService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.categories = EntityService(
            backend, settings.categories_table, "category", order_by="name",
        )

    async def list_categories(self) -> list[Category]:
        rows = await self.categories.list()
        return sorted(parse_rows(Category, rows, "category"), key=display_order)

    async def list_options(self) -> list[CategoryOption]:
        rows = await self.categories.list(columns="id, name", order_by="name")
        return parse_rows(CategoryOption, rows, "category")

    async def get_category(self, category_id: str) -> Category:
        return Category.model_validate(await self.categories.get(category_id))

    async def create_category(self, data: CategoryCreate) -> Category:
        return Category.model_validate(await self.categories.create(data.to_row()))

    async def update_category(self, category_id: str, data: CategoryCreate) -> Category:
        return Category.model_validate(await self.categories.update(category_id, data.to_row()))

    async def delete_category(self, category_id: str) -> None:
        # Products keep the dangling id and show "Category not found"
        await self.categories.delete(category_id)
