"""
Order Event Broker

In-process fan-out of order changes to connected Kitchen Display and Order
Status Screen sockets. Each subscriber owns a bounded queue; a subscriber
that stops draining its queue loses the oldest events rather than blocking
the publisher.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Any

from qrmenu.schemas import Order, OrderEvent

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_UPDATED = "order.updated"


class OrderEventBroker:
    """Publish/subscribe hub for order events."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        logger.debug(f"Subscriber added ({self.subscriber_count} connected)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        logger.debug(f"Subscriber removed ({self.subscriber_count} connected)")

    def publish(self, event_type: str, order: Order) -> int:
        """
        Queue an event for every subscriber.

        Returns:
            Number of subscribers the event was delivered to
        """
        payload: dict[str, Any] = OrderEvent(type=event_type, order=order).model_dump(
            mode="json", by_alias=True
        )
        for queue in list(self._subscribers):
            if queue.full():
                queue.get_nowait()
                logger.warning("Subscriber queue full, dropping oldest event")
            queue.put_nowait(payload)
        return len(self._subscribers)


@lru_cache()
def get_event_broker() -> OrderEventBroker:
    """Get the process-wide event broker."""
    return OrderEventBroker()


def reset_event_broker() -> None:
    """Clear the cached broker instance."""
    get_event_broker.cache_clear()
