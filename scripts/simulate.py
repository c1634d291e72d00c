"""
Rush Hour Simulation Script

Fires a burst of concurrent QR-menu orders at a running server, then logs
in as the administrator and walks every order through the kitchen until
it is served (which queues it for the Excel ledger).
Run from project root: python scripts/simulate.py
"""

import asyncio
import sys
import os
import random
import time
import argparse
from datetime import datetime
from typing import Any, Optional

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"

# Demo menu created when the server has none
DEMO_CATEGORY = {"generalName": "Pizza", "name": {"en": "Pizza"}, "order": 1}
DEMO_ITEMS = [
    {"generalName": "Margherita", "name": {"en": "Pizza Margherita"}, "price": 14.99},
    {"generalName": "Pepperoni", "name": {"en": "Pepperoni Pizza"}, "price": 16.99},
    {"generalName": "Caesar Salad", "name": {"en": "Caesar Salad"}, "price": 8.99},
    {"generalName": "Tiramisu", "name": {"en": "Tiramisu"}, "price": 7.99, "maxSelect": 2},
]
ORDER_NOTES = [None, "Extra napkins", "No onions", "Birthday table", "Spicy please"]


# =============================================================================
# SETUP
# =============================================================================

async def login(client: httpx.AsyncClient) -> bool:
    """Open an admin session on ``client`` (cookie is kept by the client)."""
    response = await client.post(
        f"{API_BASE_URL}/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    return response.status_code == 200


async def ensure_demo_data(client: httpx.AsyncClient) -> tuple[list[dict], list[dict]]:
    """Return (orderable items, tables), creating demo ones if missing."""
    menu = (await client.get(f"{API_BASE_URL}/api/menu")).json()
    items = [item for category in menu["categories"] for item in category["items"]]

    if not items:
        response = await client.post(f"{API_BASE_URL}/api/categories", json=DEMO_CATEGORY)
        response.raise_for_status()
        category_id = response.json()["id"]
        for item in DEMO_ITEMS:
            response = await client.post(
                f"{API_BASE_URL}/api/items",
                json={**item, "categoryId": category_id},
            )
            response.raise_for_status()
            items.append(response.json())

    tables = (await client.get(f"{API_BASE_URL}/api/tables", params={"branchId": "1"})).json()
    if not tables:
        for number in range(1, 6):
            response = await client.post(
                f"{API_BASE_URL}/api/tables",
                json={"tableNumber": f"T{number}", "branchId": "1"},
            )
            response.raise_for_status()
            tables.append(response.json())

    return items, tables


def generate_order_payload(items: list[dict], tables: list[dict]) -> dict[str, Any]:
    """Generate a random cart for POST /api/orders."""
    lines = []
    for item in random.sample(items, k=random.randint(1, min(3, len(items)))):
        limit = item.get("maxSelect") or 3
        lines.append({"menuItemId": item["id"], "quantity": random.randint(1, limit)})

    table: Optional[dict] = random.choice(tables) if tables else None
    return {
        "branchId": "1",
        "tableId": table["id"] if table else None,
        "items": lines,
        "notes": random.choice(ORDER_NOTES),
    }


# =============================================================================
# ORDER FLOW
# =============================================================================

async def place_order(
    client: httpx.AsyncClient,
    order_num: int,
    items: list[dict],
    tables: list[dict],
) -> dict[str, Any]:
    """Place one order from the public menu."""
    payload = generate_order_payload(items, tables)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        data = response.json()
        return {
            "order_num": order_num,
            "success": True,
            "order_id": data["id"],
            "order_number": data["orderNumber"],
            "total": data["totalAmount"],
            "time": elapsed,
        }
    return {
        "order_num": order_num,
        "success": False,
        "error": response.text[:100],
        "time": elapsed,
    }


async def serve_order(client: httpx.AsyncClient, order_id: str) -> bool:
    """Move an order pending -> preparing -> ready -> served."""
    for status in ("preparing", "ready", "served"):
        await asyncio.sleep(random.uniform(0.0, 0.2))
        response = await client.patch(
            f"{API_BASE_URL}/api/orders/{order_id}",
            json={"status": status},
            timeout=30.0,
        )
        if response.status_code != 200:
            return False
    return True


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, serve: bool = True) -> dict[str, Any]:
    """
    Run the rush hour simulation.

    Args:
        num_orders: Number of orders to place concurrently
        serve: Walk placed orders through the kitchen to served
    """
    print("=" * 70)
    print("RUSH HOUR SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as staff:
        if not await login(staff):
            print("\nAdmin login failed.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        items, tables = await ensure_demo_data(staff)

        start_time = time.time()
        async with httpx.AsyncClient() as customers:
            tasks = [place_order(customers, i + 1, items, tables) for i in range(num_orders)]
            results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        served = 0
        if serve and successful:
            print("\nWalking orders through the kitchen...\n")
            outcomes = await asyncio.gather(*(serve_order(staff, r["order_id"]) for r in successful))
            served = sum(1 for ok in outcomes if ok)

    numbers = [r["order_number"] for r in successful]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    print(f"Duplicate Order Numbers: {len(numbers) - len(set(numbers))}")
    print(f"Total Time: {total_time}s")
    if serve:
        print(f"Served: {served}/{len(successful)}")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        print("\nPerformance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Total Revenue: {total_revenue:.2f}")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check Celery terminal - export tasks should complete")
    print("2. Run: python scripts/verify.py")
    print(f"3. Open {API_BASE_URL}/order-status to see the screen")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "served": served,
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    """Pre-flight health check."""
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"Health check failed: {response.text}")
            return False
        data = response.json()
        print(f"Status: {data.get('status')}")
        print(f"Storage: {data.get('storage')}")
        print(f"Redis: {data.get('redis')}")
        return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--no-serve", action="store_true", help="Leave orders pending")
    parser.add_argument("--skip-health", action="store_true", help="Skip the health check")
    args = parser.parse_args()

    if not args.skip_health and not asyncio.run(check_health()):
        sys.exit(1)

    asyncio.run(run_simulation(num_orders=args.orders, serve=not args.no_serve))
