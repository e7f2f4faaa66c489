import unittest
from datetime import datetime

from menu_admin.formatting import format_datetime, format_optional, format_price


class FormattingTests(unittest.TestCase):
    def test_format_price(self):
        self.assertEqual(format_price(1234.5), "R$ 1.234,50")
        self.assertEqual(format_price(0.5), "R$ 0,50")
        self.assertEqual(format_price(None), "R$ 0,00")
        self.assertEqual(format_price(-12), "-R$ 12,00")
        self.assertEqual(format_price(1000000, symbol="$"), "$ 1.000.000,00")

    def test_format_datetime(self):
        self.assertEqual(format_datetime(datetime(2024, 3, 7, 9, 5)), "07/03/2024 09:05")
        self.assertEqual(format_datetime("2024-12-31T23:59:00Z"), "31/12/2024 23:59")
        self.assertEqual(format_datetime(None), "")

    def test_format_optional(self):
        self.assertEqual(format_optional(None, "km"), "Not set")
        self.assertEqual(format_optional(8.5, "km"), "8.5 km")
        self.assertEqual(format_optional(10.0, "km"), "10 km")
        self.assertEqual(format_optional(40, "minutes"), "40 minutes")


if __name__ == "__main__":
    unittest.main()
