"""
Order event fan-out.
"""

from datetime import datetime, timezone

from qrmenu.schemas import Order, OrderItem
from qrmenu.services.events import ORDER_UPDATED, OrderEventBroker, get_event_broker, reset_event_broker


def make_order(number: str = "ORD-001") -> Order:
    now = datetime(2026, 5, 1, 18, 30, tzinfo=timezone.utc)
    return Order(
        id=number.lower(),
        order_number=number,
        branch_id="1",
        items=[OrderItem(id="line-1", menu_item_id="pizza", quantity=1, price=9.0)],
        total_amount=9.0,
        created_at=now,
        updated_at=now,
    )


def test_publish_reaches_every_subscriber():
    broker = OrderEventBroker()
    kitchen, screen = broker.subscribe(), broker.subscribe()

    assert broker.publish(ORDER_UPDATED, make_order()) == 2
    for queue in (kitchen, screen):
        event = queue.get_nowait()
        assert event["type"] == ORDER_UPDATED
        assert event["order"]["orderNumber"] == "ORD-001"
        assert event["order"]["createdAt"].startswith("2026-05-01T18:30:00")


def test_unsubscribed_queue_gets_nothing():
    broker = OrderEventBroker()
    queue = broker.subscribe()
    broker.unsubscribe(queue)

    assert broker.publish(ORDER_UPDATED, make_order()) == 0
    assert queue.empty()
    assert broker.subscriber_count == 0


def test_full_queue_drops_oldest_event():
    broker = OrderEventBroker(max_queue_size=2)
    queue = broker.subscribe()

    for number in ("ORD-001", "ORD-002", "ORD-003"):
        broker.publish(ORDER_UPDATED, make_order(number))

    received = [queue.get_nowait()["order"]["orderNumber"] for _ in range(queue.qsize())]
    assert received == ["ORD-002", "ORD-003"]


def test_broker_is_process_wide():
    assert get_event_broker() is get_event_broker()
    first = get_event_broker()
    reset_event_broker()
    assert get_event_broker() is not first
