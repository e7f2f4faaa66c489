"""
Celery Tasks
Background export of the order list.
"""

import logging
import time
from datetime import datetime

from menu_admin.celery_worker import celery_app
from menu_admin.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True,
)
def export_orders_to_excel(self, orders: list[dict]) -> dict:
    """
    Export orders to the Excel workbook.

    Args:
        orders: Order rows as returned by the backend

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: Exporting {len(orders)} orders")
    start_time = time.time()

    result = ExcelManager.export_orders(orders)

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: Export completed in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: Export failed - {result['message']}")

    return result


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        "status": "healthy",
        "worker": "celery",
        "timestamp": datetime.now().isoformat(),
    }


@celery_app.task
def clear_export_files() -> dict:
    """
    Remove the exported workbook.
    """
    success = ExcelManager.clear_all()
    return {
        "success": success,
        "message": "Export files cleared" if success else "Failed to clear export files",
        "timestamp": datetime.now().isoformat(),
    }
