"""
Excel Ledger Verification Script

Verifies data integrity of the served-orders Excel ledger.
Run from project root: python scripts/verify.py
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from qrmenu.services.excel_manager import ExcelManager


def verify_excel() -> bool:
    """Verify the ledger after a simulation run."""
    manager = ExcelManager()
    excel_file = manager.file_path

    print("=" * 60)
    print("EXCEL LEDGER VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {excel_file}")
    print("=" * 60)

    if not excel_file.exists():
        print("\nExcel file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(excel_file, engine="openpyxl")
        print("\nFile loaded successfully!")
    except (OSError, ValueError) as e:
        print(f"\nCould not read Excel file: {e}")
        return False

    print("\nSTATISTICS:")
    print(f"   Served Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    missing = [col for col in ExcelManager.ORDER_COLUMNS if col not in df.columns]
    if missing:
        print(f"\nMissing Columns: {missing}")
    else:
        print("\nAll ledger columns present")

    if "order_id" in df.columns:
        duplicates = df["order_id"].duplicated().sum()
        if duplicates > 0:
            print(f"\n{duplicates} duplicate order IDs found!")
        else:
            print("No duplicate order IDs")

    if "status" in df.columns:
        not_served = df[df["status"] != "served"]
        if len(not_served):
            print(f"\n{len(not_served)} rows are not marked served!")

    if "total_amount" in df.columns and len(df):
        print("\nREVENUE:")
        print(f"   Total: {df['total_amount'].sum():.2f}")
        print(f"   Average: {df['total_amount'].mean():.2f}")

        if "branch_id" in df.columns:
            print("\nBY BRANCH:")
            by_branch = df.groupby("branch_id")["total_amount"].agg(["count", "sum"])
            print(by_branch.to_string())

    print("\nRECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ["order_number", "table_number", "item_count", "total_amount", "served_at"]
        cols = [c for c in cols if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("VERIFICATION COMPLETE")
    print("=" * 60)

    return True


if __name__ == "__main__":
    sys.exit(0 if verify_excel() else 1)
