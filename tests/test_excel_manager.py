import tempfile
import unittest
from unittest import mock

from filelock import Timeout

from menu_admin.core.config import Settings
from menu_admin.services.backend.mock import demo_orders
from menu_admin.services.excel_manager import ExcelManager


class ExcelManagerTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        settings = Settings(data_directory=self.tmp.name, excel_filename="orders.xlsx")
        patcher = mock.patch("menu_admin.services.excel_manager.get_settings", return_value=settings)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self.tmp.cleanup)

    def test_nothing_exported_yet(self):
        self.assertEqual(ExcelManager.get_exported_orders(), [])

    def test_export_replaces_workbook(self):
        orders = demo_orders()

        result = ExcelManager.export_orders(orders)
        self.assertTrue(result["success"])
        self.assertEqual(result["rows"], 4)
        self.assertEqual(result["message"], "4 orders exported")

        ExcelManager.export_orders(orders[:2])
        rows = ExcelManager.get_exported_orders()
        self.assertEqual([r["order_id"] for r in rows], ["1", "2"])
        self.assertEqual(rows[0]["status_label"], "Pending")
        self.assertEqual(rows[1]["channel"], "Digital Menu")
        self.assertEqual(list(rows[0]), ExcelManager.ORDER_COLUMNS)

    def test_lock_timeout_is_reported(self):
        lock = mock.MagicMock()
        lock.__enter__.side_effect = Timeout("orders.xlsx.lock")
        with mock.patch("menu_admin.services.excel_manager.FileLock", return_value=lock):
            result = ExcelManager.export_orders(demo_orders())

        self.assertFalse(result["success"])
        self.assertTrue(result["message"].startswith("Lock timeout"))

    def test_write_error_is_raised(self):
        with mock.patch("pandas.DataFrame.to_excel", side_effect=PermissionError("read-only")):
            with self.assertRaises(PermissionError):
                ExcelManager.export_orders(demo_orders())

    def test_clear_all(self):
        ExcelManager.export_orders(demo_orders())
        self.assertTrue(ExcelManager.clear_all())
        self.assertEqual(ExcelManager.get_exported_orders(), [])


class ExportTaskTests(unittest.TestCase):
    def test_task_reports_timing(self):
        from menu_admin.tasks import export_orders_to_excel

        with mock.patch(
            "menu_admin.tasks.ExcelManager.export_orders",
            return_value={"success": True, "message": "4 orders exported", "rows": 4, "exported_at": "now"},
        ):
            result = export_orders_to_excel.apply(args=[demo_orders()]).get()

        self.assertTrue(result["success"])
        self.assertIn("processing_time_seconds", result)
        self.assertIn("task_id", result)

    def test_write_errors_are_retried(self):
        from menu_admin.tasks import export_orders_to_excel

        with mock.patch(
            "menu_admin.tasks.ExcelManager.export_orders",
            side_effect=PermissionError("read-only"),
        ) as export:
            result = export_orders_to_excel.apply(args=[demo_orders()])

        self.assertTrue(result.failed())
        self.assertIsInstance(result.result, PermissionError)
        self.assertGreater(export.call_count, 1)

    def test_health_and_clear_tasks(self):
        from menu_admin.tasks import clear_export_files, health_check

        self.assertEqual(health_check.apply().get()["status"], "healthy")

        with mock.patch("menu_admin.tasks.ExcelManager.clear_all", return_value=True):
            result = clear_export_files.apply().get()
        self.assertTrue(result["success"])
        self.assertEqual(result["message"], "Export files cleared")


if __name__ == "__main__":
    unittest.main()
