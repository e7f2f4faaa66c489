import os
import tempfile
import unittest

from menu_admin.core.config import get_settings
from menu_admin.services import CategoryService, ProductService, ScheduleService
from menu_admin.schemas import CategoryCreate, DayScheduleUpdate, ProductCreate, ScheduleUpdate, Weekday
from menu_admin.services.backend import (
    AuthenticationError,
    BackendError,
    RecordNotFoundError,
    SqlBackend,
)


class SqlBackendTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        url = f"sqlite+aiosqlite:///{os.path.join(self.tmp.name, 'menu.db')}"
        self.backend = SqlBackend(database_url=url)
        await self.backend.create_tables()
        self.settings = get_settings()

    async def asyncTearDown(self):
        await self.backend.aclose()
        self.tmp.cleanup()

    async def test_insert_select_update_delete(self):
        table = self.settings.categories_table
        row = await self.backend.insert(table, {"name": "Drinks", "order": 2})
        self.assertTrue(row["id"])
        self.assertIsInstance(row["created_at"], str)

        rows = await self.backend.select(table, columns="id, name", filters={"name": "Drinks"})
        self.assertEqual(rows, [{"id": row["id"], "name": "Drinks"}])

        updated = await self.backend.update(table, row["id"], {"name": "Beverages"})
        self.assertEqual(updated["name"], "Beverages")
        self.assertEqual(updated["order"], 2)

        await self.backend.delete(table, row["id"])
        self.assertEqual(await self.backend.count(table), 0)

    async def test_order_and_null_filters(self):
        table = self.settings.categories_table
        await self.backend.insert(table, {"name": "B", "order": 2})
        await self.backend.insert(table, {"name": "A", "order": 1})
        await self.backend.insert(table, {"name": "C"})

        names = [r["name"] for r in await self.backend.select(table, order_by="name", descending=True)]
        self.assertEqual(names, ["C", "B", "A"])

        unordered = await self.backend.select(table, filters={"order": None})
        self.assertEqual([r["name"] for r in unordered], ["C"])

        first = await self.backend.select(table, order_by="name", limit=1)
        self.assertEqual(first[0]["name"], "A")

    async def test_update_unknown_row(self):
        with self.assertRaises(RecordNotFoundError):
            await self.backend.update(self.settings.categories_table, "missing", {"name": "X"})

    async def test_duplicate_id(self):
        table = self.settings.store_table
        await self.backend.insert(table, {"id": "store", "status": True})
        with self.assertRaises(BackendError) as ctx:
            await self.backend.insert(table, {"id": "store", "status": False})
        self.assertEqual(ctx.exception.code, "23505")

    async def test_unknown_table_and_column(self):
        with self.assertRaises(BackendError) as ctx:
            await self.backend.select("nope")
        self.assertEqual(ctx.exception.code, "42P01")

        with self.assertRaises(BackendError) as ctx:
            await self.backend.insert(self.settings.categories_table, {"name": "X", "colour": "red"})
        self.assertEqual(ctx.exception.code, "PGRST204")

    async def test_unknown_sort_column(self):
        with self.assertRaises(BackendError) as ctx:
            await self.backend.select(self.settings.categories_table, order_by="colour")
        self.assertEqual(ctx.exception.code, "42703")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn("colour", ctx.exception.message)

    async def test_services_on_sql(self):
        category = await CategoryService(self.backend).create_category(CategoryCreate(name="Burgers"))
        products = ProductService(self.backend)
        await products.create_product(
            ProductCreate(name="Cheeseburger", price=24.9, category_id=category.id, stock=5)
        )

        listing = await products.list_products()
        self.assertEqual(listing.total, 1)
        self.assertEqual(listing.products[0].category_name, "Burgers")
        self.assertEqual(listing.products[0].stock, 5)

        schedule = ScheduleService(self.backend)
        await schedule.save_schedule(
            ScheduleUpdate(days=[DayScheduleUpdate(day=Weekday.FRIDAY, is_open=True, close_time="23:00")])
        )
        days = {d.day: d for d in (await schedule.get_schedule()).days}
        self.assertTrue(days[Weekday.FRIDAY].is_open)
        self.assertEqual(days[Weekday.FRIDAY].close_time, "23:00")
        self.assertEqual(await self.backend.count(self.settings.schedule_table), 7)

    async def test_static_admin_auth(self):
        session = await self.backend.sign_in(self.settings.admin_email, self.settings.admin_password)
        user = await self.backend.get_user(session.access_token)
        self.assertEqual(user.email, self.settings.admin_email)

        await self.backend.sign_out(session.access_token)
        with self.assertRaises(AuthenticationError):
            await self.backend.get_user(session.access_token)

    async def test_health_check(self):
        self.assertTrue(await self.backend.health_check())


if __name__ == "__main__":
    unittest.main()
