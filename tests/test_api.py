import unittest
from unittest import mock

import httpx
from celery.exceptions import OperationalError
from fastapi.testclient import TestClient

from menu_admin.core.config import Settings, get_settings
from menu_admin.dependencies import backend_dependency
from menu_admin.main import app
from menu_admin.services.backend import InMemoryBackend, SupabaseBackend


class AdminApiTestCase(unittest.TestCase):
    """Signed-in client over a fresh, seeded in-memory backend."""

    def setUp(self):
        self.backend = InMemoryBackend(seed=True)
        app.dependency_overrides[backend_dependency] = lambda: self.backend
        self.client = TestClient(app)

        settings = get_settings()
        response = self.client.post(
            "/api/auth/login",
            json={"email": settings.admin_email, "password": settings.admin_password},
        )
        self.assertEqual(response.status_code, 200)
        self.token = response.json()["access_token"]
        self.client.headers["Authorization"] = f"Bearer {self.token}"

    def tearDown(self):
        app.dependency_overrides.clear()


class AuthApiTests(AdminApiTestCase):
    def test_me_returns_signed_in_admin(self):
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], get_settings().admin_email)

    def test_wrong_password_is_rejected(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": get_settings().admin_email, "password": "wrong"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid email or password")

    def test_admin_routes_require_a_token(self):
        del self.client.headers["Authorization"]
        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Not authenticated")

    def test_logout_invalidates_the_token(self):
        response = self.client.post("/api/auth/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Signed out")

        response = self.client.get("/api/dashboard")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid or expired session")


class UnreachableAuthApiTests(unittest.TestCase):
    def setUp(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        backend = SupabaseBackend(
            url="https://project.supabase.co",
            key="service-key",
            transport=httpx.MockTransport(refuse),
        )
        app.dependency_overrides[backend_dependency] = lambda: backend
        self.client = TestClient(app, headers={"Authorization": "Bearer some-token"})

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_session_lookup_failure_maps_to_502(self):
        for path in ("/api/products", "/api/auth/me"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 502, path)
            self.assertEqual(response.json()["detail"], "Error verifying session")


class OpenAccessApiTests(unittest.TestCase):
    def setUp(self):
        app.dependency_overrides[backend_dependency] = lambda: InMemoryBackend(seed=True)
        patcher = mock.patch(
            "menu_admin.dependencies.get_settings",
            return_value=Settings(auth_required=False),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_admin_routes_open_without_token(self):
        response = self.client.get("/api/dashboard")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["store_open"])

    def test_me_still_needs_a_user(self):
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Not authenticated")


class ProductApiTests(AdminApiTestCase):
    def create_category(self, name="Burgers"):
        response = self.client.post("/api/categories", json={"name": name})
        self.assertEqual(response.status_code, 201)
        return response.json()["data"]

    def test_create_list_update_delete(self):
        category = self.create_category()

        response = self.client.post(
            "/api/products",
            json={
                "name": "  Cheeseburger ",
                "description": "",
                "price": "24,90",
                "discount_price": "19.90",
                "category_id": category["id"],
                "stock": "12",
            },
        )
        self.assertEqual(response.status_code, 201)
        result = response.json()
        self.assertTrue(result["success"])
        self.assertEqual(result["message"], "Product created successfully!")
        product = result["data"]
        self.assertEqual(product["name"], "Cheeseburger")
        self.assertIsNone(product["description"])
        self.assertEqual(product["price"], 24.9)
        self.assertEqual(product["stock"], 12)

        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 200)
        listing = response.json()
        self.assertEqual(listing["total"], 1)
        item = listing["products"][0]
        self.assertEqual(item["category_name"], "Burgers")
        self.assertTrue(item["on_sale"])
        self.assertEqual(item["effective_price"], 19.9)
        self.assertEqual(item["price_display"], "R$ 24,90")
        self.assertEqual(item["effective_price_display"], "R$ 19,90")

        response = self.client.put(
            f"/api/products/{product['id']}",
            json={"name": "Cheeseburger", "price": 26, "category_id": "no-category"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Product updated successfully!")
        self.assertIsNone(response.json()["data"]["category_id"])

        item = self.client.get("/api/products").json()["products"][0]
        self.assertEqual(item["category_name"], "No category")
        self.assertFalse(item["on_sale"])

        response = self.client.delete(f"/api/products/{product['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Product deleted successfully!")
        self.assertEqual(self.client.get("/api/products").json()["total"], 0)

    def test_search_filters_but_total_counts_all(self):
        for name, description in [("Pizza", "Mozzarella"), ("Soda", None), ("Calzone", "Folded pizza")]:
            self.client.post("/api/products", json={"name": name, "price": 10, "description": description})

        listing = self.client.get("/api/products", params={"search": "PIZZA"}).json()
        self.assertEqual(listing["total"], 3)
        self.assertEqual({p["name"] for p in listing["products"]}, {"Pizza", "Calzone"})

    def test_deleted_category_shows_not_found(self):
        category = self.create_category("Drinks")
        self.client.post(
            "/api/products",
            json={"name": "Soda", "price": 6, "category_id": category["id"]},
        )
        self.client.delete(f"/api/categories/{category['id']}")

        item = self.client.get("/api/products").json()["products"][0]
        self.assertEqual(item["category_name"], "Category not found")

    def test_validation_errors(self):
        response = self.client.post("/api/products", json={"name": "   ", "price": 10})
        self.assertEqual(response.status_code, 422)

        response = self.client.post("/api/products", json={"name": "Soda", "price": -1})
        self.assertEqual(response.status_code, 422)

        response = self.client.post(
            "/api/products",
            json={"name": "Soda", "price": 5, "image": "not-a-url"},
        )
        self.assertEqual(response.status_code, 422)

    def test_stock_update(self):
        product = self.client.post("/api/products", json={"name": "Soda", "price": 6}).json()["data"]

        response = self.client.patch(f"/api/products/{product['id']}/stock", json={"stock": 40})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["stock"], 40)

        response = self.client.patch(f"/api/products/{product['id']}/stock", json={"stock": ""})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Stock unchanged")
        self.assertEqual(self.client.get(f"/api/products/{product['id']}").json()["stock"], 40)

    def test_negative_stock_is_rejected(self):
        product = self.client.post("/api/products", json={"name": "Soda", "price": 6, "stock": 5}).json()["data"]

        response = self.client.patch(f"/api/products/{product['id']}/stock", json={"stock": -1})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.client.get(f"/api/products/{product['id']}").json()["stock"], 5)

    def test_rows_with_missing_columns_still_list(self):
        table = self.backend._table(get_settings().products_table)
        table["legacy"] = {"id": "legacy", "name": "Legacy", "price": None}
        table["broken"] = {"id": "broken", "name": None, "price": 3}

        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 200)
        listing = response.json()
        self.assertEqual(listing["total"], 2)
        self.assertEqual([p["name"] for p in listing["products"]], ["Legacy"])
        self.assertEqual(listing["products"][0]["price_display"], "R$ 0,00")
        self.assertEqual(listing["products"][0]["effective_price_display"], "R$ 0,00")

    def test_unknown_product(self):
        response = self.client.get("/api/products/missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Product not found")

        response = self.client.patch("/api/products/missing/stock", json={"stock": 1})
        self.assertEqual(response.status_code, 404)

    def test_backend_failure_maps_to_502(self):
        self.backend.failure_rate = 1.0
        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Error loading products")


class CategoryApiTests(AdminApiTestCase):
    def test_list_is_ordered_and_options_by_name(self):
        self.client.post("/api/categories", json={"name": "Desserts", "order": 3})
        self.client.post("/api/categories", json={"name": "Burgers", "order": 1})
        self.client.post("/api/categories", json={"name": "Sides"})

        names = [c["name"] for c in self.client.get("/api/categories").json()]
        self.assertEqual(names, ["Burgers", "Desserts", "Sides"])

        options = self.client.get("/api/categories/options").json()
        self.assertEqual([o["name"] for o in options], ["Burgers", "Desserts", "Sides"])
        self.assertEqual(set(options[0]), {"id", "name"})

    def test_update_and_get(self):
        category = self.client.post("/api/categories", json={"name": "Drinks"}).json()["data"]
        response = self.client.put(
            f"/api/categories/{category['id']}",
            json={"name": "Beverages", "type": "bebidas", "order": ""},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Category updated successfully!")

        fetched = self.client.get(f"/api/categories/{category['id']}").json()
        self.assertEqual(fetched["name"], "Beverages")
        self.assertIsNone(fetched["order"])

    def test_update_unknown_category(self):
        response = self.client.put("/api/categories/missing", json={"name": "X"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Category not found")


class DeliveryApiTests(AdminApiTestCase):
    def test_empty_settings_show_not_set(self):
        settings = self.client.get("/api/delivery").json()
        self.assertIsNone(settings["id"])
        self.assertEqual(settings["price_display"], "Not set")
        self.assertEqual(settings["time_display"], "Not set")

    def test_save_creates_then_updates_single_row(self):
        response = self.client.put(
            "/api/delivery",
            json={"max_km": "8,5", "price": "7", "time_min": 40},
        )
        self.assertEqual(response.status_code, 200)
        saved = response.json()["data"]
        self.assertEqual(saved["max_distance_display"], "8.5 km")
        self.assertEqual(saved["price_display"], "R$ 7,00")
        self.assertEqual(saved["time_display"], "40 minutes")

        self.client.put("/api/delivery", json={"max_km": 10, "price": 9.5, "time_min": ""})
        settings = self.client.get("/api/delivery").json()
        self.assertEqual(settings["id"], saved["id"])
        self.assertEqual(settings["max_km"], 10)
        self.assertEqual(settings["time_display"], "Not set")
        self.assertEqual(len(self.backend._tables[get_settings().delivery_table]), 1)


class ScheduleApiTests(AdminApiTestCase):
    def test_defaults_for_all_weekdays(self):
        days = self.client.get("/api/schedule").json()["days"]
        self.assertEqual([d["day"] for d in days][:2], ["segunda", "terca"])
        self.assertEqual(len(days), 7)
        self.assertTrue(all(not d["is_open"] for d in days))
        self.assertEqual(days[0]["open_time"], "09:00")
        self.assertEqual(days[0]["close_time"], "18:00")

    def test_save_and_reload(self):
        response = self.client.put(
            "/api/schedule",
            json={
                "days": [
                    {"day": "segunda", "is_open": True, "open_time": "10:00:00", "close_time": "22:30"},
                    {"day": "domingo", "is_open": False},
                ]
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Opening hours saved successfully!")

        days = {d["day"]: d for d in self.client.get("/api/schedule").json()["days"]}
        self.assertTrue(days["segunda"]["is_open"])
        self.assertEqual(days["segunda"]["open_time"], "10:00")
        self.assertEqual(days["segunda"]["close_time"], "22:30")
        self.assertFalse(days["domingo"]["is_open"])
        self.assertEqual(len(self.backend._tables[get_settings().schedule_table]), 7)

    def test_invalid_time_is_rejected(self):
        response = self.client.put(
            "/api/schedule",
            json={"days": [{"day": "segunda", "is_open": True, "open_time": "25:00"}]},
        )
        self.assertEqual(response.status_code, 422)

    def test_partial_failure(self):
        self.backend.failure_rate = 1.0
        with mock.patch(
            "menu_admin.services.schedule.ScheduleService.get_schedule",
            new=mock.AsyncMock(return_value=_closed_week()),
        ):
            response = self.client.put(
                "/api/schedule",
                json={"days": [{"day": "segunda", "is_open": True}]},
            )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Error saving some schedules")


def _closed_week():
    from menu_admin.schemas import WEEKDAY_LABELS, DaySchedule, ScheduleResponse, Weekday

    return ScheduleResponse(
        days=[DaySchedule(day=d, label=WEEKDAY_LABELS[d]) for d in Weekday]
    )


class OrderApiTests(AdminApiTestCase):
    def test_list_is_newest_first_with_labels(self):
        listing = self.client.get("/api/orders").json()
        self.assertEqual(listing["total"], 4)
        self.assertEqual([o["id"] for o in listing["orders"]], ["1", "2", "3", "4"])
        first = listing["orders"][0]
        self.assertEqual(first["status_label"], "Pending")
        self.assertTrue(first["total_display"].startswith("R$ "))

    def test_status_and_search_filters(self):
        listing = self.client.get("/api/orders", params={"status": "delivered"}).json()
        self.assertEqual(listing["total"], 4)
        self.assertEqual([o["status"] for o in listing["orders"]], ["delivered"])

        listing = self.client.get("/api/orders", params={"status": "all", "search": "whatsapp"}).json()
        self.assertTrue(listing["orders"])
        self.assertTrue(all(o["channel"] == "WhatsApp" for o in listing["orders"]))

    def test_orders_with_missing_columns_still_list(self):
        table = self.backend._table(get_settings().orders_table)
        table["77"] = {"id": "77", "status": None, "total_value": 12, "net_value": None, "channel": None}

        response = self.client.get("/api/orders", params={"search": "whatsapp"})
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("77", [o["id"] for o in response.json()["orders"]])

        response = self.client.get("/api/orders")
        self.assertEqual(response.status_code, 200)
        listing = response.json()
        self.assertEqual(listing["total"], 5)
        legacy = next(o for o in listing["orders"] if o["id"] == "77")
        self.assertEqual(legacy["net_display"], "R$ 0,00")
        self.assertEqual(legacy["created_display"], "")
        self.assertEqual(legacy["status_label"], "")

    def test_get_order(self):
        response = self.client.get("/api/orders/3")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], "3")

        response = self.client.get("/api/orders/99")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Order #99 not found")

    def test_export_queues_task(self):
        task = mock.Mock(id="task-1")
        with mock.patch("menu_admin.tasks.export_orders_to_excel.delay", return_value=task) as delay:
            response = self.client.post("/api/orders/export")
        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json()["task_id"], "task-1")
        self.assertEqual(response.json()["orders"], 4)
        self.assertEqual(len(delay.call_args.args[0]), 4)

    def test_export_without_broker(self):
        with mock.patch(
            "menu_admin.tasks.export_orders_to_excel.delay",
            side_effect=OperationalError("connection refused"),
        ):
            response = self.client.post("/api/orders/export")
        self.assertEqual(response.status_code, 503)


class StoreAndDashboardApiTests(AdminApiTestCase):
    def test_toggle_store(self):
        self.assertTrue(self.client.get("/api/store").json()["is_open"])

        response = self.client.put("/api/store", json={"is_open": False})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Store is now closed")

        status = self.client.get("/api/store").json()
        self.assertFalse(status["is_open"])
        self.assertEqual(status["label"], "Closed")

    def test_dashboard_counts(self):
        self.client.post("/api/categories", json={"name": "Drinks"})
        self.client.post("/api/products", json={"name": "Soda", "price": 6})
        self.client.post("/api/products", json={"name": "Juice", "price": 8})

        stats = self.client.get("/api/dashboard").json()
        self.assertEqual(stats["total_products"], 2)
        self.assertEqual(stats["total_categories"], 1)
        self.assertEqual(stats["total_optionals"], 0)
        self.assertTrue(stats["store_open"])
        self.assertEqual(stats["store_status_label"], "Open")

    def test_dashboard_defaults_when_backend_fails(self):
        self.backend.failure_rate = 1.0
        response = self.client.get("/api/dashboard")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "total_products": 0,
                "total_categories": 0,
                "total_optionals": 0,
                "store_open": False,
                "store_status_label": "Closed",
            },
        )


class HealthApiTests(AdminApiTestCase):
    def test_health_reports_backend(self):
        with mock.patch("menu_admin.main.redis.Redis.from_url") as from_url:
            from_url.return_value.ping.return_value = True
            response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["backend"], "healthy")
        self.assertEqual(payload["backend_provider"], "memory")
        self.assertEqual(payload["status"], "operational")


if __name__ == "__main__":
    unittest.main()
