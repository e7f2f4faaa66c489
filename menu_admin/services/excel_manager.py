"""
Excel File Manager with Concurrency Control

Writes the order list to a spreadsheet under a file lock so concurrent
export tasks never interleave writes.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from menu_admin.core.config import get_settings
from menu_admin.services.orders import status_badge

logger = logging.getLogger(__name__)


class ExcelManager:
    """File-locked Excel export of orders."""

    ORDER_COLUMNS = [
        "order_id",
        "date_time",
        "status",
        "status_label",
        "channel",
        "total_value",
        "net_value",
        "exported_at",
    ]

    @classmethod
    def _paths(cls) -> tuple[Path, Path, Path]:
        """(data dir, workbook, lock file) from current settings."""
        settings = get_settings()
        data_dir = Path(settings.data_directory)
        workbook = data_dir / settings.excel_filename
        return data_dir, workbook, data_dir / f"{settings.excel_filename}.lock"

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir, _, _ = cls._paths()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _to_record(cls, order: dict[str, Any], export_time: str) -> dict[str, Any]:
        status = order.get("status") or ""
        return {
            "order_id": str(order.get("id")),
            "date_time": order.get("created_at"),
            "status": status,
            "status_label": status_badge(status)[0],
            "channel": order.get("channel"),
            "total_value": order.get("total_value"),
            "net_value": order.get("net_value"),
            "exported_at": export_time,
        }

    @classmethod
    def export_orders(cls, orders: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Replace the workbook with the given orders.

        A lock timeout is reported in the result; write errors are raised
        so the export task can retry them.

        Returns:
            dict with success, message, rows and exported_at

        Raises:
            OSError: If the workbook cannot be written
        """
        cls._ensure_data_dir()
        _, workbook, lock_path = cls._paths()
        timeout = get_settings().excel_lock_timeout

        result = {
            "success": False,
            "message": "",
            "rows": len(orders),
            "exported_at": None,
        }

        try:
            lock = FileLock(str(lock_path), timeout=timeout)

            with lock:
                logger.debug(f"Lock acquired for {workbook}")

                export_time = datetime.now().isoformat()
                df = pd.DataFrame(
                    [cls._to_record(o, export_time) for o in orders],
                    columns=cls.ORDER_COLUMNS,
                )
                df.to_excel(str(workbook), index=False, engine="openpyxl")

                logger.info(f"{len(orders)} orders exported to {workbook}")

                result["success"] = True
                result["message"] = f"{len(orders)} orders exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for {workbook}")

        except Timeout:
            result["message"] = f"Lock timeout ({timeout}s)"
            logger.error(f"Lock timeout exporting to {workbook}")

        return result

    @classmethod
    def get_exported_orders(cls) -> list[dict[str, Any]]:
        """Read the workbook back, or [] when nothing was exported yet."""
        _, workbook, _ = cls._paths()

        if not workbook.exists():
            return []

        df = pd.read_excel(workbook, engine="openpyxl", dtype={"order_id": str})
        return df.to_dict("records")

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the workbook and its lock file."""
        _, workbook, lock_path = cls._paths()
        try:
            for f in (workbook, lock_path):
                if f.exists():
                    f.unlink()
            logger.info("Export files cleared")
            return True
        except OSError as e:
            logger.error(f"Error clearing files: {e}")
            return False
