"""
Excel Verification Script

Checks the order export written by the Celery worker.
Run from project root: python scripts/verify.py
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from menu_admin.formatting import format_price
from menu_admin.services.excel_manager import ExcelManager


def verify_excel() -> bool:
    """Verify the exported workbook."""
    _, workbook, _ = ExcelManager._paths()

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {workbook}")
    print("=" * 60)

    if not workbook.exists():
        print("\n❌ Excel file not found!")
        print("   Queue an export first: POST /api/orders/export")
        return False

    rows = ExcelManager.get_exported_orders()
    print(f"\n✅ File loaded successfully!")

    print(f"\n📊 STATISTICS:")
    print(f"   Total Orders: {len(rows)}")

    if rows:
        missing = [c for c in ExcelManager.ORDER_COLUMNS if c not in rows[0]]
        if missing:
            print(f"\n⚠️ Missing Columns: {missing}")
        else:
            print(f"\n✅ All required columns present")

    ids = [r["order_id"] for r in rows]
    duplicates = len(ids) - len(set(ids))
    if duplicates:
        print(f"\n⚠️ {duplicates} duplicate order IDs found!")
    else:
        print(f"✅ No duplicate order IDs")

    by_status: dict[str, int] = {}
    for r in rows:
        by_status[r["status_label"]] = by_status.get(r["status_label"], 0) + 1
    if by_status:
        print(f"\n📋 BY STATUS:")
        for label, count in sorted(by_status.items()):
            print(f"   {label}: {count}")

    # Cancelled orders bring no revenue
    revenue = [r for r in rows if r["status"] != "cancelled"]
    if revenue:
        total = sum(r["total_value"] for r in revenue)
        net = sum(r["net_value"] for r in revenue)
        print(f"\n💰 REVENUE:")
        print(f"   Total: {format_price(total)}")
        print(f"   Net: {format_price(net)}")
        print(f"   Average: {format_price(total / len(revenue))}")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return True


if __name__ == "__main__":
    sys.exit(0 if verify_excel() else 1)
