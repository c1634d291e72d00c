"""
Order Lifecycle Service

Places orders from the public menu cart, walks them through the kitchen and
feeds the two read views:

    - Kitchen Display: orders still to be cooked
    - Order Status Screen: every active order, for customers

Order status is derived from item statuses until the order is served or
cancelled:

    ready      every item is ready
    preparing  at least one item is preparing
    pending    otherwise

Every change is published on the event broker; served orders are queued for
the Excel ledger.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from kombu.exceptions import OperationalError

from qrmenu.core.config import get_settings
from qrmenu.schemas import (
    ItemStatus,
    Order,
    OrderCreate,
    OrderItem,
    OrderStatus,
    OrderUpdate,
)
from qrmenu.services.events import ORDER_CREATED, ORDER_UPDATED, OrderEventBroker
from qrmenu.storage.base import BaseStorage, new_id
from qrmenu.tasks import export_order_to_excel

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class OrderError(Exception):
    """Base class for order failures; carries the HTTP status to answer with."""
    status_code = 400


class InvalidOrder(OrderError):
    status_code = 400


class OrderNotFound(OrderError):
    status_code = 404


class OrderConflict(OrderError):
    status_code = 409


# =============================================================================
# STATUS RULES
# =============================================================================

TERMINAL_STATUSES = frozenset({OrderStatus.SERVED.value, OrderStatus.CANCELLED.value})

KITCHEN_STATUSES = (OrderStatus.PENDING.value, OrderStatus.PREPARING.value)

# Display order on the Order Status Screen
STATUS_RANK = {
    OrderStatus.PENDING.value: 0,
    OrderStatus.PREPARING.value: 1,
    OrderStatus.READY.value: 2,
}

ORDER_TRANSITIONS = {
    OrderStatus.PENDING.value: {
        OrderStatus.PREPARING.value,
        OrderStatus.READY.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.PREPARING.value: {OrderStatus.READY.value, OrderStatus.CANCELLED.value},
    OrderStatus.READY.value: {OrderStatus.SERVED.value, OrderStatus.CANCELLED.value},
    OrderStatus.SERVED.value: set(),
    OrderStatus.CANCELLED.value: set(),
}

OSS_LIMIT = 3


def derive_order_status(items: Iterable[OrderItem]) -> str:
    """Aggregate item statuses into the order status."""
    statuses = [item.status for item in items]
    if statuses and all(s == ItemStatus.READY for s in statuses):
        return OrderStatus.READY.value
    if any(s == ItemStatus.PREPARING for s in statuses):
        return OrderStatus.PREPARING.value
    return OrderStatus.PENDING.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# SERVICE
# =============================================================================

class OrderService:
    """Order operations over a storage backend."""

    def __init__(self, storage: BaseStorage, broker: OrderEventBroker):
        self.storage = storage
        self.broker = broker

    async def _require(self, order_id: str) -> Order:
        order = await self.storage.get_order(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found")
        return order

    async def get_order(self, order_id: str) -> Order:
        return await self._require(order_id)

    async def list_orders(
        self,
        branch_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Order]:
        statuses = [status] if status else None
        return await self.storage.list_orders(branch_id=branch_id, statuses=statuses)

    async def place_order(self, data: OrderCreate) -> Order:
        """
        Validate a cart and store it as a new pending order.

        Raises:
            InvalidOrder: unknown/inactive branch, foreign table, unavailable
                item or a quantity above the item's maxSelect
        """
        branch = await self.storage.get_branch(data.branch_id)
        if branch is None or not branch.is_active:
            raise InvalidOrder(f"Branch {data.branch_id} is not accepting orders")

        table_number = None
        if data.table_id:
            table = await self.storage.get_table(data.table_id)
            if table is None or table.branch_id != branch.id:
                raise InvalidOrder(f"Table {data.table_id} does not belong to branch {branch.id}")
            table_number = table.table_number

        lines: list[OrderItem] = []
        for line in data.items:
            item = await self.storage.get_item(line.menu_item_id)
            if item is None or not item.available:
                raise InvalidOrder(f"Menu item {line.menu_item_id} is not available")
            if item.max_select is not None and line.quantity > item.max_select:
                raise InvalidOrder(
                    f"At most {item.max_select} of '{item.general_name}' per order"
                )
            lines.append(OrderItem(
                id=new_id(),
                menu_item_id=item.id,
                menu_item_name=dict(item.name) or {"en": item.general_name},
                quantity=line.quantity,
                price=item.unit_price,
                notes=line.notes,
            ))

        now = _utcnow()
        order = Order(
            id=new_id(),
            order_number=await self.storage.next_order_number(),
            branch_id=branch.id,
            table_id=data.table_id or None,
            table_number=table_number,
            items=lines,
            status=OrderStatus.PENDING,
            total_amount=round(sum(line.quantity * line.price for line in lines), 2),
            notes=data.notes,
            created_at=now,
            updated_at=now,
        )
        order = await self.storage.create_order(order)

        logger.info(
            f"Order {order.order_number} placed: {len(lines)} line(s), "
            f"total {order.total_amount} @ branch {branch.id}"
        )
        self.broker.publish(ORDER_CREATED, order)
        return order

    async def update_order(self, order_id: str, changes: OrderUpdate) -> Order:
        """
        Apply an explicit status change and/or new notes.

        Raises:
            OrderNotFound: unknown order
            OrderConflict: transition not allowed from the current status
        """
        order = await self._require(order_id)
        previous = order.status

        if changes.status is not None and changes.status != order.status:
            target = changes.status
            if target not in ORDER_TRANSITIONS[order.status]:
                raise OrderConflict(f"Cannot move order from {order.status} to {target}")

            if target == OrderStatus.PREPARING:
                for item in order.items:
                    if item.status == ItemStatus.PENDING:
                        item.status = ItemStatus.PREPARING.value
            elif target == OrderStatus.READY:
                for item in order.items:
                    item.status = ItemStatus.READY.value
            order.status = target

        if "notes" in changes.model_fields_set:
            order.notes = changes.notes

        return await self._save(order, previous)

    async def update_item_status(self, order_id: str, item_id: str, status: str) -> Order:
        """
        Change one line's kitchen status and re-derive the order status.

        Raises:
            OrderNotFound: unknown order or line
            OrderConflict: order already served or cancelled
        """
        order = await self._require(order_id)
        if order.status in TERMINAL_STATUSES:
            raise OrderConflict(f"Order {order.order_number} is already {order.status}")

        item = next((i for i in order.items if i.id == item_id), None)
        if item is None:
            raise OrderNotFound(f"Item {item_id} not found in order {order.order_number}")

        previous = order.status
        item.status = status
        order.status = derive_order_status(order.items)
        return await self._save(order, previous)

    async def _save(self, order: Order, previous_status: str) -> Order:
        order.updated_at = _utcnow()
        await self.storage.save_order(order)

        if order.status != previous_status:
            logger.info(f"Order {order.order_number}: {previous_status} -> {order.status}")
        self.broker.publish(ORDER_UPDATED, order)

        if order.status == OrderStatus.SERVED and previous_status != OrderStatus.SERVED:
            self._queue_export(order)
        return order

    def _queue_export(self, order: Order) -> None:
        if not get_settings().export_served_orders:
            return

        try:
            export_order_to_excel.delay(order.model_dump(mode="json", by_alias=True))
            logger.info(f"Order {order.order_number} queued for Excel export")
        except OperationalError as e:
            logger.error(f"Could not queue Excel export for {order.order_number}: {e}")

    # =========================================================================
    # READ VIEWS
    # =========================================================================

    async def kitchen_orders(self, branch_id: Optional[str] = None) -> list[Order]:
        """Orders the kitchen still has to work on, oldest first."""
        return await self.storage.list_orders(branch_id=branch_id, statuses=KITCHEN_STATUSES)

    async def order_status_screen(self, branch_id: Optional[str] = None) -> list[Order]:
        """Active orders by status (pending, preparing, ready), oldest first within each."""
        orders = await self.storage.list_orders(branch_id=branch_id, statuses=STATUS_RANK.keys())
        orders.sort(key=lambda o: (STATUS_RANK[o.status], o.created_at))

        settings = await self.storage.get_settings()
        if settings.oss_limit_to_3_orders:
            orders = orders[:OSS_LIMIT]
        return orders
