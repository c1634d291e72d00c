"""
Served-orders Excel ledger and its Celery task.
"""

from unittest.mock import patch

import pandas as pd
import pytest
from filelock import FileLock

from qrmenu.services.excel_manager import ExcelManager
from qrmenu.tasks import export_order_to_excel


def served_order(number: str = "ORD-001", total: float = 25.5) -> dict:
    return {
        "id": f"id-{number}",
        "orderNumber": number,
        "branchId": "1",
        "tableNumber": "T3",
        "items": [
            {"menuItemId": "p1", "menuItemName": {"en": "Margherita"}, "quantity": 2, "price": 10.0},
            {"menuItemId": "d1", "menuItemName": {"tr": "Ayran"}, "quantity": 1, "price": 5.5},
        ],
        "status": "served",
        "totalAmount": total,
        "notes": None,
        "createdAt": "2026-05-01T18:30:00Z",
        "updatedAt": "2026-05-01T19:05:00Z",
    }


@pytest.fixture
def manager(tmp_path):
    return ExcelManager(data_directory=tmp_path, filename="ledger.xlsx", lock_timeout=5)


def test_build_row_flattens_items(manager):
    row = manager.build_row(served_order())

    assert row["order_number"] == "ORD-001"
    assert row["items"] == "2x Margherita; 1x Ayran"
    assert row["item_count"] == 3
    assert row["served_at"] == "2026-05-01T19:05:00Z"
    assert list(row) == ExcelManager.ORDER_COLUMNS


def test_export_appends_rows(manager):
    first = manager.export_order(served_order("ORD-001", 25.5))
    second = manager.export_order(served_order("ORD-002", 10.0))

    assert first["success"] and second["success"]
    assert manager.file_path.exists()

    df = pd.read_excel(manager.file_path, engine="openpyxl")
    assert list(df.columns) == ExcelManager.ORDER_COLUMNS
    assert df["order_number"].tolist() == ["ORD-001", "ORD-002"]
    assert df["total_amount"].sum() == pytest.approx(35.5)

    rows = manager.get_all_orders()
    assert [r["order_id"] for r in rows] == ["id-ORD-001", "id-ORD-002"]


def test_export_reports_lock_timeout(manager):
    manager.lock_timeout = 0.1
    manager._ensure_data_dir()
    with FileLock(str(manager.lock_path)):
        result = manager.export_order(served_order())

    assert result["success"] is False
    assert "Lock timeout" in result["message"]
    assert not manager.file_path.exists()


def test_clear(manager):
    assert manager.clear() is False
    manager.export_order(served_order())
    assert manager.clear() is True
    assert manager.get_all_orders() == []


def test_task_writes_through_manager(tmp_path):
    ledger = ExcelManager(data_directory=tmp_path, filename="task.xlsx")
    with patch("qrmenu.tasks.ExcelManager", return_value=ledger):
        result = export_order_to_excel.apply(args=[served_order()]).get()

    assert result["success"] is True
    assert ledger.get_all_orders()[0]["order_number"] == "ORD-001"
