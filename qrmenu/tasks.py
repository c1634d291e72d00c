"""
Celery Tasks
Background work triggered by the order lifecycle.
"""

import logging
import time
from datetime import datetime, timezone

from qrmenu.celery_worker import celery_app
from qrmenu.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError, ValueError),
    retry_backoff=True,
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Append a served order to the Excel ledger.

    Args:
        order_data: Order serialized by the API (camelCase keys)

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_number = order_data.get("orderNumber", "unknown")

    logger.info(f"Task {task_id}: exporting {order_number}")
    start_time = time.time()

    result = ExcelManager().export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: {order_number} exported in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: {order_number} not exported - {result['message']}")

    return result


@celery_app.task
def health_check() -> dict:
    """Round-trip task used to verify a worker is consuming."""
    return {
        "status": "healthy",
        "worker": "celery",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@celery_app.task
def clear_excel_file() -> dict:
    """Delete the served orders ledger."""
    removed = ExcelManager().clear()
    return {
        "success": True,
        "message": "Excel ledger cleared" if removed else "Excel ledger was already empty",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
