"""
Dashboard Metrics

Aggregates menu, order and visit data for the back-office dashboard:

    - sales: sum of served order totals, dated by when they were served
    - customers: distinct visitor sessions
    - menu views / QR scans: recorded menu visits
"""

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from qrmenu.schemas import (
    BestSeller,
    DashboardMetrics,
    MenuVisit,
    Order,
    OrderStatus,
    SalesPoint,
    ViewsPoint,
)
from qrmenu.storage.base import BaseStorage

logger = logging.getLogger(__name__)

BEST_SELLER_LIMIT = 5
CHART_DAYS = 7


def _served_at(order: Order) -> datetime:
    # Served orders are terminal, so the last update is the serving time
    return order.updated_at


def _sales(orders: Iterable[Order], since: datetime) -> float:
    return round(sum(o.total_amount for o in orders if _served_at(o) >= since), 2)


def _views(visits: Iterable[MenuVisit], since: datetime) -> int:
    return sum(1 for v in visits if v.created_at >= since)


def _customers(visits: Iterable[MenuVisit], since: datetime) -> int:
    return len({v.session_id for v in visits if v.created_at >= since and v.session_id})


def best_sellers(orders: Iterable[Order], limit: int = BEST_SELLER_LIMIT) -> list[BestSeller]:
    """Menu items ranked by quantity sold."""
    counts: Counter = Counter()
    names: dict[str, str] = {}
    for order in orders:
        for item in order.items:
            counts[item.menu_item_id] += item.quantity
            names.setdefault(
                item.menu_item_id,
                item.menu_item_name.get("en") or next(iter(item.menu_item_name.values()), item.menu_item_id),
            )
    return [
        BestSeller(item_id=item_id, name=names[item_id], count=count)
        for item_id, count in counts.most_common(limit)
    ]


async def dashboard_metrics(storage: BaseStorage, now: Optional[datetime] = None) -> DashboardMetrics:
    now = now or datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    chart_start = start_of_day - timedelta(days=CHART_DAYS - 1)

    items = await storage.list_items()
    categories = await storage.list_categories()
    served = await storage.list_orders(statuses=[OrderStatus.SERVED.value])
    visits = await storage.list_visits(since=min(month_ago, chart_start))
    all_visits = len(await storage.list_visits())

    sales_by_day: dict[str, float] = defaultdict(float)
    views_by_day: dict[str, int] = defaultdict(int)
    for order in served:
        served_at = _served_at(order)
        if served_at >= chart_start:
            sales_by_day[served_at.date().isoformat()] += order.total_amount
    for visit in visits:
        if visit.created_at >= chart_start:
            views_by_day[visit.created_at.date().isoformat()] += 1

    days = [(chart_start + timedelta(days=i)).date().isoformat() for i in range(CHART_DAYS)]

    return DashboardMetrics(
        total_items=len(items),
        total_categories=len(categories),
        available_items=sum(1 for i in items if i.available),
        qr_scans=all_visits,
        sales_day=_sales(served, start_of_day),
        sales_week=_sales(served, week_ago),
        sales_month=_sales(served, month_ago),
        customers_day=_customers(visits, start_of_day),
        customers_week=_customers(visits, week_ago),
        customers_month=_customers(visits, month_ago),
        menu_views_day=_views(visits, start_of_day),
        menu_views_week=_views(visits, week_ago),
        menu_views_month=_views(visits, month_ago),
        best_sellers=best_sellers(served),
        sales_chart=[SalesPoint(date=d, amount=round(sales_by_day[d], 2)) for d in days],
        views_chart=[ViewsPoint(date=d, views=views_by_day[d]) for d in days],
    )
