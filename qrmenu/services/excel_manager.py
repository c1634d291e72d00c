"""
Served Orders Excel Ledger

Appends every served order to ``<data_directory>/<excel_filename>`` so the
accountant can open the day's takings in a spreadsheet. Writers from
several Celery worker processes are serialized with a file lock.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout

from qrmenu.core.config import get_settings

logger = logging.getLogger(__name__)


def _item_label(item: dict[str, Any]) -> str:
    names = item.get("menuItemName") or item.get("menu_item_name") or {}
    name = names.get("en") or next(iter(names.values()), None) or item.get("menuItemId", "?")
    return f"{item.get('quantity', 1)}x {name}"


class ExcelManager:
    """File-locked Excel writer for served orders."""

    ORDER_COLUMNS = [
        "order_number",
        "order_id",
        "branch_id",
        "table_number",
        "items",
        "item_count",
        "total_amount",
        "status",
        "notes",
        "created_at",
        "served_at",
        "exported_at",
    ]

    def __init__(
        self,
        data_directory: Optional[Path] = None,
        filename: Optional[str] = None,
        lock_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.data_dir = Path(data_directory or settings.data_directory)
        self.file_path = self.data_dir / (filename or settings.excel_filename)
        self.lock_path = self.file_path.with_name(self.file_path.name + ".lock")
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.excel_lock_timeout

    def _ensure_data_dir(self) -> None:
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.data_dir}")

    def _load_or_create_df(self) -> pd.DataFrame:
        if self.file_path.exists():
            return pd.read_excel(self.file_path, engine="openpyxl")
        return pd.DataFrame(columns=self.ORDER_COLUMNS)

    def build_row(self, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Flatten an order (as serialized by the API, camelCase) into one
        spreadsheet row.
        """
        items = order_data.get("items") or []
        return {
            "order_number": order_data.get("orderNumber"),
            "order_id": order_data.get("id"),
            "branch_id": order_data.get("branchId"),
            "table_number": order_data.get("tableNumber"),
            "items": "; ".join(_item_label(item) for item in items),
            "item_count": sum(int(item.get("quantity", 1)) for item in items),
            "total_amount": order_data.get("totalAmount"),
            "status": order_data.get("status"),
            "notes": order_data.get("notes"),
            "created_at": order_data.get("createdAt"),
            "served_at": order_data.get("updatedAt"),
            "exported_at": datetime.now(timezone.utc).isoformat(),
        }

    def export_order(self, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Append one order to the ledger.

        A lock timeout is reported in the result; any other failure is
        raised so the calling task can retry.
        """
        self._ensure_data_dir()

        order_number = order_data.get("orderNumber", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_number": order_number,
            "exported_at": None,
        }

        try:
            with FileLock(str(self.lock_path), timeout=self.lock_timeout):
                logger.debug(f"Lock acquired for {order_number}")

                row = self.build_row(order_data)
                df = self._load_or_create_df()
                df = pd.concat([df, pd.DataFrame([row], columns=self.ORDER_COLUMNS)], ignore_index=True)
                df.to_excel(str(self.file_path), index=False, engine="openpyxl")

                logger.info(f"Order {order_number} exported to {self.file_path.name}")
                result["success"] = True
                result["message"] = f"Order {order_number} exported"
                result["exported_at"] = row["exported_at"]

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout for {order_number}")

        return result

    def get_all_orders(self) -> list[dict[str, Any]]:
        """Rows of the ledger, oldest first."""
        if not self.file_path.exists():
            return []
        df = pd.read_excel(self.file_path, engine="openpyxl")
        return df.to_dict("records")

    def clear(self) -> bool:
        """Delete the ledger and its lock file."""
        removed = False
        for path in (self.file_path, self.lock_path):
            if path.exists():
                path.unlink()
                removed = True
        logger.info(f"Excel ledger cleared ({self.file_path})")
        return removed
